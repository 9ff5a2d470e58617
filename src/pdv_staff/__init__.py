"""Staff-facing JSON API (PDV, Cozinha, Caixa, Produtos, Combos)."""
