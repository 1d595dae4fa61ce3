"""
Unit tests for the observation store.
"""
import pytest

from dal.observation_dal import ObservationDAL
from models.observation_record import ObservationRecord
from utils.database_init import AsyncDatabaseInitializer


@pytest.fixture
def dal(tmp_path):
    return ObservationDAL(AsyncDatabaseInitializer(tmp_path / "db"))


def _record(i, **fields):
    return ObservationRecord(id=None, filename=f"{i}.png", image_url=f"/uploads/{i}.png", **fields)


class TestObservationDAL:
    @pytest.mark.asyncio
    async def test_insert_assigns_increasing_ids(self, dal):
        first = await dal.create_observation(_record(1))
        second = await dal.create_observation(_record(2))

        assert second > first
        assert await dal.count() == 2

    @pytest.mark.asyncio
    async def test_round_trips_fields_and_sets_created_at(self, dal):
        await dal.create_observation(
            _record(1, label="clay shard", estimated_age="1200-1400 CE", confidence=0.82, raw_response="{}")
        )

        [row] = await dal.list_recent()

        assert row.label == "clay shard"
        assert row.estimated_age == "1200-1400 CE"
        assert row.confidence == 0.82
        assert row.raw_response == "{}"
        assert row.created_at

    @pytest.mark.asyncio
    async def test_null_classification_is_allowed(self, dal):
        await dal.create_observation(_record(1, raw_response="not json"))

        [row] = await dal.list_recent()

        assert row.label is None and row.estimated_age is None and row.confidence is None

    @pytest.mark.asyncio
    async def test_list_is_newest_first_and_capped(self, dal):
        for i in range(103):
            await dal.create_observation(_record(i))

        rows = await dal.list_recent()

        assert len(rows) == 100
        ids = [r.id for r in rows]
        assert ids == sorted(ids, reverse=True)
        assert rows[0].filename == "102.png"

    @pytest.mark.asyncio
    async def test_limit_cannot_exceed_100(self, dal):
        for i in range(3):
            await dal.create_observation(_record(i))

        assert len(await dal.list_recent(2)) == 2
        assert len(await dal.list_recent(1000)) == 3

    @pytest.mark.asyncio
    async def test_rows_survive_a_new_initializer(self, tmp_path):
        await ObservationDAL(AsyncDatabaseInitializer(tmp_path)).create_observation(_record(1))

        rows = await ObservationDAL(AsyncDatabaseInitializer(tmp_path)).list_recent()

        assert [r.filename for r in rows] == ["1.png"]


def test_initializer_rejects_a_file_path(tmp_path):
    target = tmp_path / "not-a-dir"
    target.write_text("x")
    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer(target)


@pytest.mark.asyncio
async def test_directory_is_created_on_first_use(tmp_path):
    initializer = AsyncDatabaseInitializer(tmp_path / "later" / "db")
    assert not initializer.db_dir.exists()

    await initializer.ensure_database()

    assert initializer.db_path.is_file()
