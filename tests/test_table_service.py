import pytest

from pdv_shared.errors import PreconditionFailed, ValidationError
from pdv_shared.services import account_service, table_service


def test_create_and_list_tables_in_number_order(app):
    table_service.create_table(3, "Varanda")
    table_service.create_table(1)

    listed = table_service.list_tables()
    assert [(t["number"], t["label"], t["status"]) for t in listed] == [
        (1, None, "livre"),
        (3, "Varanda", "livre"),
    ]


def test_duplicate_or_invalid_number(app):
    table_service.create_table(4)
    with pytest.raises(ValidationError):
        table_service.create_table(4)
    with pytest.raises(ValidationError):
        table_service.create_table(0)
    with pytest.raises(ValidationError):
        table_service.create_table(2.5)


def test_update_label_and_number(tables):
    table = table_service.update_table(tables[1], number=10, label="Janela")
    assert (table["number"], table["label"]) == (10, "Janela")

    table = table_service.update_table(tables[1], clear_label=True)
    assert table["label"] is None

    with pytest.raises(ValidationError):
        table_service.update_table(tables[1], number=5)


def test_occupied_table_keeps_number_and_cannot_be_deleted(waiter, tables):
    account_service.open_table_account(tables[2], waiter)

    with pytest.raises(PreconditionFailed):
        table_service.update_table(tables[2], number=20)
    with pytest.raises(PreconditionFailed):
        table_service.delete_table(tables[2])

    relabelled = table_service.update_table(tables[2], label="Mesa do canto")
    assert relabelled["label"] == "Mesa do canto"


def test_table_with_history_cannot_be_deleted(waiter, tables):
    account = account_service.open_table_account(tables[2], waiter)
    account_service.return_to_table_selection(account["id"], waiter)

    with pytest.raises(PreconditionFailed):
        table_service.delete_table(tables[2])


def test_delete_unused_table(tables):
    table_service.delete_table(tables[1])
    assert [t["number"] for t in table_service.list_tables()] == [2, 5]
