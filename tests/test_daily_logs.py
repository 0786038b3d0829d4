"""
Daily log persistence against an in-memory MongoDB.
"""
import pytest
from datetime import date, datetime, timezone
from fastapi import HTTPException

from controllers import catalogue_controller
from controllers.daily_log_controller import (
    save_daily_log, get_daily_log, get_daily_logs_for_project, get_default_log_date, default_daily_log,
)
from controllers.project_controller import get_project, get_projects_by_owner
from models.daily_log import Weather
from models.project import RegisteredResource

from conftest import make_annotation, make_log, make_resource


# ═══════════════════════════════════════════════════════════════
# 1. SAVE / LOAD
# ═══════════════════════════════════════════════════════════════
class TestSaveAndLoad:

    async def test_round_trip_keeps_content(self, db, project, dl, march_first):
        stamp = datetime(2024, 3, 1, 9, 30, 15, 123456, tzinfo=timezone.utc)
        log = make_log(
            weather=Weather(state="Pioggia", temperature=8, precipitation="Moderate"),
            annotations=[make_annotation(dl, timestamp=stamp)],
            resources=[make_resource()],
        )
        await save_daily_log(db, project.id, march_first, log)

        loaded = await get_daily_log(db, project.id, march_first)
        assert loaded.id == "2024-03-01"
        assert loaded.date == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert loaded.weather == log.weather
        assert loaded.annotations[0].timestamp == stamp.replace(microsecond=123000)
        assert loaded.annotations[0].timestamp.tzinfo is not None
        assert [r.model_dump(exclude={"registered_resource_id"}) for r in loaded.resources] == \
            [r.model_dump(exclude={"registered_resource_id"}) for r in log.resources]
        assert loaded.is_validated is False

    async def test_missing_log_is_none(self, db, project, march_first):
        assert await get_daily_log(db, project.id, march_first) is None

    async def test_missing_optional_fields_get_defaults(self, db, project, march_first):
        await db.daily_logs.insert_one({
            "project_id": project.id,
            "id": "2024-03-01",
            "date": datetime(2024, 3, 1, 12),
            "weather": {"state": "Sole", "temperature": 21, "precipitation": "Assenti"},
            "annotations": [],
        })
        loaded = await get_daily_log(db, project.id, march_first)
        assert loaded.resources == []
        assert loaded.is_validated is False
        assert loaded.date.tzinfo is not None

    async def test_save_updates_last_log_date(self, db, project, dl, march_first):
        await save_daily_log(db, project.id, march_first, make_log(annotations=[make_annotation(dl)]))
        stored = await get_project(db, project.id)
        assert stored.last_log_date == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

    async def test_resave_overwrites_same_document(self, db, project, dl, march_first):
        await save_daily_log(db, project.id, march_first, make_log(annotations=[make_annotation(dl)]))
        await save_daily_log(db, project.id, march_first, make_log(
            annotations=[make_annotation(dl), make_annotation(dl, content="Seconda")],
        ))
        logs = await get_daily_logs_for_project(db, project.id)
        assert len(logs) == 1
        assert len(logs[0].annotations) == 2

    async def test_date_mismatch_is_rejected(self, db, project, dl, march_first):
        log = make_log(annotations=[make_annotation(dl)], date=datetime(2024, 3, 2, 12, tzinfo=timezone.utc))
        with pytest.raises(HTTPException) as exc:
            await save_daily_log(db, project.id, march_first, log)
        assert exc.value.status_code == 400

    async def test_unknown_project_is_404(self, db, dl, march_first):
        with pytest.raises(HTTPException) as exc:
            await save_daily_log(db, "missing", march_first, make_log(annotations=[make_annotation(dl)]))
        assert exc.value.status_code == 404

    def test_default_log_is_not_persisted(self, march_first):
        log = default_daily_log(march_first)
        assert log.persisted is False
        assert log.id == "2024-03-01"
        assert log.weather == Weather(state="Sole", temperature=20, precipitation="Assenti")
        assert log.annotations == [] and log.resources == []


# ═══════════════════════════════════════════════════════════════
# 2. EMPTY LOGS
# ═══════════════════════════════════════════════════════════════
class TestEmptyLogs:

    async def test_saving_empty_log_deletes_it(self, db, project, dl, march_first):
        await save_daily_log(db, project.id, march_first, make_log(annotations=[make_annotation(dl)]))
        assert await save_daily_log(db, project.id, march_first, make_log()) is None
        assert await get_daily_log(db, project.id, march_first) is None

    async def test_saving_empty_log_that_never_existed_is_fine(self, db, project, march_first):
        assert await save_daily_log(db, project.id, march_first, make_log()) is None
        assert await db.daily_logs.count_documents({}) == 0

    async def test_empty_save_leaves_catalogue_alone(self, db, project, march_first):
        await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        await save_daily_log(db, project.id, march_first, make_log())
        stored = await get_project(db, project.id)
        assert len(stored.registered_resources) == 1


# ═══════════════════════════════════════════════════════════════
# 3. RESOURCE REGISTER SCENARIOS
# ═══════════════════════════════════════════════════════════════
class TestRegisterScenarios:

    async def test_first_save_registers_resource(self, db, project, march_first):
        saved = await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        stored = await get_project(db, project.id)
        assert len(stored.registered_resources) == 1
        entry = stored.registered_resources[0]
        assert (entry.type, entry.description, entry.name) == ("Manodopera", "Operaio", "Mario Rossi")
        assert saved.resources[0].registered_resource_id == entry.id
        loaded = await get_daily_log(db, project.id, march_first)
        assert loaded.resources[0].registered_resource_id == entry.id

    async def test_next_day_same_content_reuses_entry(self, db, project, march_first):
        await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        second_day = date(2024, 3, 2)
        saved = await save_daily_log(db, project.id, second_day, make_log(resources=[make_resource(quantity=5)]))
        stored = await get_project(db, project.id)
        assert len(stored.registered_resources) == 1
        assert saved.resources[0].registered_resource_id == stored.registered_resources[0].id
        assert saved.resources[0].quantity == 5
        assert "quantity" not in stored.registered_resources[0].model_dump()

    async def test_unchanged_catalogue_is_not_rewritten(self, db, project, march_first):
        await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        version = (await get_project(db, project.id)).catalogue_version
        await save_daily_log(db, project.id, date(2024, 3, 2), make_log(resources=[make_resource()]))
        assert (await get_project(db, project.id)).catalogue_version == version

    async def test_stale_caller_catalogue_does_not_drop_entries(self, db, project, march_first):
        await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        gru = make_resource(type="Macchinario/Mezzo", description="Gru", name="Liebherr")
        await save_daily_log(db, project.id, date(2024, 3, 2), make_log(resources=[gru]), current_catalogue=[])
        stored = await get_project(db, project.id)
        assert len(stored.registered_resources) == 2

    async def test_register_in_payload_is_advisory(self, db, project, march_first):
        await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        stored_entry = (await get_project(db, project.id)).registered_resources[0]
        stale = [RegisteredResource(id="reg-ghost", type="Manodopera", description="Operaio", name="Mario Rossi")]
        saved = await save_daily_log(db, project.id, date(2024, 3, 2), make_log(
            resources=[make_resource()], registered_resources=stale,
        ))
        assert saved.resources[0].registered_resource_id == stored_entry.id
        assert [e.id for e in (await get_project(db, project.id)).registered_resources] == [stored_entry.id]


# ═══════════════════════════════════════════════════════════════
# 4. CONCURRENT CATALOGUE UPDATES
# ═══════════════════════════════════════════════════════════════
class TestCatalogueCompareAndSwap:

    async def test_concurrent_change_is_retried_not_lost(self, db, project, march_first, monkeypatch):
        original = catalogue_controller.load_catalogue
        other = RegisteredResource(type="Manodopera", description="Gruista", name="Anna Neri")
        calls = []

        async def racing_load(database, project_id):
            loaded = await original(database, project_id)
            if not calls:
                await database.projects.update_one(
                    {"id": project_id},
                    {"$push": {"registered_resources": other.model_dump()}, "$inc": {"catalogue_version": 1}},
                )
            calls.append(1)
            return loaded

        monkeypatch.setattr(catalogue_controller, "load_catalogue", racing_load)
        await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))

        stored = await get_project(db, project.id)
        assert len(calls) == 2
        assert {e.description for e in stored.registered_resources} == {"Gruista", "Operaio"}
        assert stored.catalogue_version == 2

    async def test_persistent_conflict_gives_up_with_409(self, db, project, march_first, monkeypatch):
        original = catalogue_controller.load_catalogue

        async def always_racing(database, project_id):
            loaded = await original(database, project_id)
            await database.projects.update_one({"id": project_id}, {"$inc": {"catalogue_version": 1}})
            return loaded

        monkeypatch.setattr(catalogue_controller, "load_catalogue", always_racing)
        with pytest.raises(HTTPException) as exc:
            await save_daily_log(db, project.id, march_first, make_log(resources=[make_resource()]))
        assert exc.value.status_code == 409
        assert await get_daily_log(db, project.id, march_first) is None


# ═══════════════════════════════════════════════════════════════
# 5. PROJECT-LEVEL READS
# ═══════════════════════════════════════════════════════════════
class TestProjectLogQueries:

    async def test_logs_for_project_sorted_by_date(self, db, project, dl):
        for day in (5, 1, 3):
            await save_daily_log(db, project.id, date(2024, 3, day), make_log(annotations=[make_annotation(dl)]))
        logs = await get_daily_logs_for_project(db, project.id)
        assert [log.id for log in logs] == ["2024-03-01", "2024-03-03", "2024-03-05"]

    async def test_default_date_is_latest_log(self, db, project, dl):
        for day in (5, 1):
            await save_daily_log(db, project.id, date(2024, 3, day), make_log(annotations=[make_annotation(dl)]))
        assert await get_default_log_date(db, project.id) == date(2024, 3, 5)

    async def test_default_date_without_logs_is_today(self, db, project):
        assert await get_default_log_date(db, project.id) == datetime.now(timezone.utc).date()

    async def test_projects_by_owner_use_latest_log_date(self, db, project, user, dl):
        await save_daily_log(db, project.id, date(2024, 3, 5), make_log(annotations=[make_annotation(dl)]))
        # an older save moves last_log_date backwards on the document
        await save_daily_log(db, project.id, date(2024, 3, 1), make_log(annotations=[make_annotation(dl)]))
        projects = await get_projects_by_owner(db, user.id)
        assert len(projects) == 1
        assert projects[0].last_log_date.date() == date(2024, 3, 5)
