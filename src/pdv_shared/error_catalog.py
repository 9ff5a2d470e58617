"""
Catálogo centralizado de erros controlados do PDV.
Usado para documentação e como referência dos códigos devolvidos pela API.
"""

ERROR_CATALOG = {
    "AUTH_001": {
        "title": "Credenciais inválidas",
        "description": "O e-mail ou a senha informados não correspondem a nenhum usuário.",
        "http_code": 401,
        "solution": "Conferir os dados e tentar novamente.",
    },
    "AUTH_002": {
        "title": "Sessão expirada",
        "description": "O token de acesso expirou ou não foi enviado.",
        "http_code": 401,
        "solution": "Entrar novamente.",
    },
    "AUTH_003": {
        "title": "Usuário inativo",
        "description": "O perfil existe mas está marcado como inativo.",
        "http_code": 403,
        "solution": "Pedir ao administrador que reative o perfil.",
    },
    "PERM_001": {
        "title": "Acesso negado (papel)",
        "description": "O papel do usuário não dá acesso a esta área.",
        "http_code": 403,
        "solution": "Usar a rota padrão do papel devolvida em 'redirect_to'.",
    },
    "VALID_001": {
        "title": "Dados inválidos",
        "description": "Campos obrigatórios ausentes ou valores fora do intervalo permitido.",
        "http_code": 400,
        "solution": "Corrigir os campos indicados e reenviar.",
    },
    "DATA_001": {
        "title": "Registro não encontrado",
        "description": "Mesa, conta, item, produto, combo ou caixa inexistente.",
        "http_code": 404,
        "solution": "Atualizar a tela e conferir o identificador.",
    },
    "STATE_001": {
        "title": "Transição inválida",
        "description": "O item ou a conta não está no estado exigido pela ação.",
        "http_code": 409,
        "solution": "Atualizar a tela; a ação só vale para o estado indicado.",
    },
    "STATE_002": {
        "title": "Pré-condição não atendida",
        "description": (
            "Conta com itens em produção ou prontos, conta já encerrada "
            "ou produto inativo."
        ),
        "http_code": 409,
        "solution": "Resolver a pendência indicada na mensagem e repetir.",
    },
    "CASH_001": {
        "title": "Caixa não aberto",
        "description": "Não há caixa aberto para a data de hoje.",
        "http_code": 409,
        "solution": "Abrir o caixa do dia antes de receber pagamentos ou lançar movimentos.",
    },
    "PAY_001": {
        "title": "Pagamento divergente",
        "description": "A soma dos pagamentos difere do total final em mais de R$ 0,01.",
        "http_code": 400,
        "solution": "Ajustar os valores por forma de pagamento.",
    },
    "CONC_001": {
        "title": "Conflito de concorrência",
        "description": "Outro terminal alterou a mesma mesa ou conta ao mesmo tempo.",
        "http_code": 409,
        "solution": "Recarregar e tentar novamente.",
    },
    "STORAGE_001": {
        "title": "Falha no armazenamento",
        "description": "O envio da foto ao storage falhou ou o storage não está configurado.",
        "http_code": 502,
        "solution": "Tentar novamente; conferir SUPABASE_URL e a chave de serviço.",
    },
    "SYSTEM_001": {
        "title": "Erro interno",
        "description": "Exceção não controlada no servidor.",
        "http_code": 500,
        "solution": "Consultar os logs do servidor.",
    },
}


def describe(code: str) -> dict:
    """Return the catalog entry for `code`, falling back to the generic one."""
    return ERROR_CATALOG.get(code, ERROR_CATALOG["SYSTEM_001"])
