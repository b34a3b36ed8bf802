import re
import datetime

import pytest
from unittest.mock import AsyncMock, MagicMock
from pymongo.errors import DuplicateKeyError, OperationFailure

from permit_portal_service.app.config import settings
from permit_portal_service.app.models import BuildingApplicationDB, OccupancyApplicationDB
from permit_portal_service.app.service.exceptions import DuplicateReferenceNumberError, StorageError
from permit_portal_service.infrastructure.database import application_store as store


def make_collection(find_one=None, docs=None):
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=find_one)
    collection.insert_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.create_index = AsyncMock()
    cursor = MagicMock()
    cursor.sort.return_value = cursor # find().sort()
    cursor.to_list = AsyncMock(return_value=docs or [])
    collection.find.return_value = cursor
    return collection


@pytest.fixture
def collections():
    return {
        settings.BUILDING_COLLECTION_NAME: make_collection(),
        settings.OCCUPANCY_COLLECTION_NAME: make_collection(),
    }


@pytest.fixture
def mock_db(collections):
    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections[name]
    return db


def test_reference_no_query_is_exact_and_case_insensitive():
    query = store.reference_no_query("B-1700000000000")
    condition = query["reference_no"]
    pattern = re.compile(condition["$regex"], re.IGNORECASE if "i" in condition["$options"] else 0)

    assert pattern.match("b-1700000000000")
    assert not pattern.match("B-17000000000001")
    assert not pattern.match("XB-1700000000000")


def test_reference_no_query_escapes_pattern_characters():
    condition = store.reference_no_query("B-.*")["reference_no"]
    pattern = re.compile(condition["$regex"], re.IGNORECASE)

    assert not pattern.match("B-1700000000000")
    assert pattern.match("B-.*")


def test_is_internal_id():
    assert store.is_internal_id("0123456789abcdef0123456789abcdef")
    assert not store.is_internal_id("B-1700000000000")
    assert not store.is_internal_id("")


@pytest.mark.asyncio
async def test_insert_application_writes_to_variant_collection(mock_db, collections, make_occupancy):
    application = make_occupancy()

    result = await store.insert_application(mock_db, application)

    assert result is application
    collections[settings.BUILDING_COLLECTION_NAME].insert_one.assert_not_awaited()
    inserted_doc = collections[settings.OCCUPANCY_COLLECTION_NAME].insert_one.call_args[0][0]
    assert inserted_doc["id"] == application.id
    assert inserted_doc["reference_no"] == application.reference_no
    assert inserted_doc["workflow_history"][0]["acting_role"] == "user"


@pytest.mark.asyncio
async def test_insert_application_stores_calendar_dates_as_strings(mock_db, collections, make_occupancy):
    application = make_occupancy()

    await store.insert_application(mock_db, application)

    inserted_doc = collections[settings.OCCUPANCY_COLLECTION_NAME].insert_one.call_args[0][0]
    assert inserted_doc["permit_info"]["building_permit_date"] == "2024-01-15"
    assert isinstance(inserted_doc["created_at"], datetime.datetime)
    assert OccupancyApplicationDB.model_validate(inserted_doc).permit_info.building_permit_date == datetime.date(2024, 1, 15)


@pytest.mark.asyncio
async def test_insert_application_duplicate_reference(mock_db, collections, make_building):
    collections[settings.BUILDING_COLLECTION_NAME].insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
    application = make_building()

    with pytest.raises(DuplicateReferenceNumberError) as exc_info:
        await store.insert_application(mock_db, application)
    assert exc_info.value.reference_no == application.reference_no


@pytest.mark.asyncio
async def test_insert_application_storage_failure(mock_db, collections, make_building):
    collections[settings.BUILDING_COLLECTION_NAME].insert_one.side_effect = OperationFailure("boom")

    with pytest.raises(StorageError):
        await store.insert_application(mock_db, make_building())


@pytest.mark.asyncio
async def test_replace_application(mock_db, collections, make_building):
    application = make_building()
    collection = collections[settings.BUILDING_COLLECTION_NAME]
    collection.replace_one.return_value = MagicMock(matched_count=1)

    assert await store.replace_application(mock_db, application) is application
    query, doc = collection.replace_one.call_args[0]
    assert query == {"id": application.id}
    assert doc["status"] == application.status


@pytest.mark.asyncio
async def test_replace_application_missing_record(mock_db, collections, make_building):
    collections[settings.BUILDING_COLLECTION_NAME].replace_one.return_value = MagicMock(matched_count=0)
    assert await store.replace_application(mock_db, make_building()) is None


@pytest.mark.asyncio
async def test_get_application_by_id_checks_both_collections(mock_db, collections, make_occupancy):
    application = make_occupancy()
    collections[settings.OCCUPANCY_COLLECTION_NAME].find_one.return_value = {"_id": "mongo-oid", **application.model_dump()}

    found = await store.get_application_by_id(mock_db, application.id)

    assert isinstance(found, OccupancyApplicationDB)
    assert found.id == application.id
    collections[settings.BUILDING_COLLECTION_NAME].find_one.assert_awaited_once_with({"id": application.id})


@pytest.mark.asyncio
async def test_get_application_by_id_not_found(mock_db):
    assert await store.get_application_by_id(mock_db, "missing") is None


@pytest.mark.asyncio
async def test_find_building_by_reference_no(mock_db, collections, make_building):
    application = make_building()
    collections[settings.BUILDING_COLLECTION_NAME].find_one.return_value = application.model_dump()

    found = await store.find_building_by_reference_no(mock_db, application.reference_no.lower())

    assert isinstance(found, BuildingApplicationDB)
    collections[settings.BUILDING_COLLECTION_NAME].find_one.assert_awaited_once_with(
        store.reference_no_query(application.reference_no.lower())
    )
    collections[settings.OCCUPANCY_COLLECTION_NAME].find_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_find_one_storage_failure(mock_db, collections):
    collections[settings.BUILDING_COLLECTION_NAME].find_one.side_effect = OperationFailure("boom")
    with pytest.raises(StorageError):
        await store.find_building_by_id(mock_db, "0" * 32)


@pytest.mark.asyncio
async def test_list_applications_for_applicant_merges_newest_first(mock_db, collections):
    now = datetime.datetime.now(datetime.timezone.utc)
    building_docs = [{"id": "b1", "application_type": "Building", "reference_no": "B-1", "created_at": now - datetime.timedelta(days=2), "status": "Submitted"}]
    occupancy_docs = [{"id": "o1", "application_type": "Occupancy", "reference_no": "O-1", "created_at": now, "status": "Pending MEO"}]
    collections[settings.BUILDING_COLLECTION_NAME].find.return_value.to_list.return_value = building_docs
    collections[settings.OCCUPANCY_COLLECTION_NAME].find.return_value.to_list.return_value = occupancy_docs

    summaries = await store.list_applications_for_applicant(mock_db, "applicant-1")

    assert [s["id"] for s in summaries] == ["o1", "b1"]
    collections[settings.BUILDING_COLLECTION_NAME].find.assert_called_once_with(
        {"applicant_id": "applicant-1"}, store.SUMMARY_PROJECTION
    )


@pytest.mark.asyncio
async def test_list_all_applications_returns_models(mock_db, collections, make_building, make_occupancy):
    building = make_building()
    occupancy = make_occupancy(building_permit=building.id)
    collections[settings.BUILDING_COLLECTION_NAME].find.return_value.to_list.return_value = [building.model_dump()]
    collections[settings.OCCUPANCY_COLLECTION_NAME].find.return_value.to_list.return_value = [occupancy.model_dump()]

    applications = await store.list_all_applications(mock_db)

    assert {type(a) for a in applications} == {BuildingApplicationDB, OccupancyApplicationDB}
    assert applications[0].created_at >= applications[1].created_at


@pytest.mark.asyncio
async def test_ensure_indexes(mock_db, collections):
    await store.ensure_indexes(mock_db)

    for collection in collections.values():
        index_specs = [call.args[0] for call in collection.create_index.await_args_list]
        assert [("reference_no", 1)] in index_specs
        reference_call = collection.create_index.await_args_list[index_specs.index([("reference_no", 1)])]
        assert reference_call.kwargs["unique"] is True
