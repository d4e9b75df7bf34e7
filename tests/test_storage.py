import datetime

import pytest

from ratapi.errors import BadRequestError, UnprocessableEntityError
from ratapi.models import Decal, Rescue, Rat
from ratapi.query import QuerySpec
from ratapi.storage import SQLAlchemyStorage, parse_attr


def column(model, name):
    return SQLAlchemyStorage(model).columns[name]


def test_parse_attr():
    assert parse_attr(column(Rescue, "code_red"), "true") is True
    assert parse_attr(column(Rescue, "code_red"), "0") is False
    assert parse_attr(column(Rescue, "command_identifier"), "42") == 42
    assert parse_attr(column(Rescue, "created_at"), "2021-03-04T05:06:07+01:00") == datetime.datetime(2021, 3, 4, 4, 6, 7)
    assert parse_attr(column(Rescue, "quotes"), [{"message": "o7"}]) == [{"message": "o7"}]
    assert parse_attr(column(Rescue, "client"), None) is None


def test_parse_attr_error():
    with pytest.raises(UnprocessableEntityError) as exc_info:
        parse_attr(column(Rescue, "command_identifier"), "forty-two", pointer="/data/attributes/command_identifier")
    assert exc_info.value.pointer == "/data/attributes/command_identifier"


def test_unparseable_filter_value(app):
    storage = SQLAlchemyStorage(Rescue)

    with pytest.raises(BadRequestError) as exc_info:
        storage.find_and_count_all(QuerySpec(filters={"command_identifier": ["42", "abc"]}))
    assert exc_info.value.parameter == "command_identifier"
    assert exc_info.value.status_code == 400


def test_columns_are_keyed_by_attribute():
    assert "decal_type" in SQLAlchemyStorage(Decal).columns


def test_create_and_search(app):
    storage = SQLAlchemyStorage(Rat)
    for name in ("Alpha Rat", "Bravo Rat", "Charlie Rat"):
        storage.create({"name": name, "platform": "pc"})
    storage.create({"name": "Delta Rat", "platform": "ps"})

    rows, total = storage.find_and_count_all(QuerySpec(filters={"platform": ["pc"]}, sort=[("name", True)], limit=2))

    assert total == 3
    assert [rat.name for rat in rows] == ["Charlie Rat", "Bravo Rat"]


def test_relationship_changes(app):
    rats = SQLAlchemyStorage(Rat)
    storage = SQLAlchemyStorage(Rescue)
    first, second = rats.create({"name": "First Rat"}), rats.create({"name": "Second Rat"})
    rescue = storage.create({"client": "Stranded"})

    storage.add_related(rescue, "rats", [first.id, first.id])
    assert rescue.rats == [first]

    storage.set_related(rescue, "rats", [second.id])
    assert rescue.rats == [second]

    storage.remove_related(rescue, "rats", [second.id])
    assert rescue.rats == []

    storage.set_related(rescue, "first_limpet", first.id)
    assert rescue.first_limpet is first
    storage.set_related(rescue, "first_limpet", None)
    assert rescue.first_limpet is None

    with pytest.raises(UnprocessableEntityError):
        storage.add_related(rescue, "rats", ["no-such-rat"])


def test_snapshot(app):
    rescue = SQLAlchemyStorage(Rescue).create({"client": "Stranded"})

    snapshot = SQLAlchemyStorage(Rescue).snapshot(rescue)

    assert snapshot["client"] == "Stranded"
    assert "rats" not in snapshot
