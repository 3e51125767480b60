"""
Seed script: demo data goes through the store and lands in the CSV file.
"""

from datetime import datetime

from scripts import seed as seed_script
from tracker.services.persistence import FileBackedTaskStore


class TestSeed:

    def test_seed_fills_store_without_overlaps(self, file_store):
        start = datetime(2026, 3, 2, 9)

        end = seed_script.seed(file_store, num_epics=2, subtasks_per_epic=3, num_tasks=8, start=start)

        assert len(file_store.get_all_epics()) == 2
        assert len(file_store.get_all_subtasks()) == 6
        assert len(file_store.get_all_tasks()) == 8

        scheduled = file_store.get_prioritized_tasks()
        # every fourth standalone task is left unscheduled
        assert len(scheduled) == 6 + 6
        assert scheduled[0].start_time == start
        for earlier, later in zip(scheduled, scheduled[1:]):
            assert earlier.end_time <= later.start_time
        assert end == max(item.end_time for item in scheduled)

        for epic in file_store.get_all_epics():
            assert len(epic.subtask_ids) == 3
            assert epic.start_time is not None

    def test_seed_continues_after_existing_schedule(self, file_store):
        start = datetime(2026, 3, 2, 9)
        seed_script.seed(file_store, 1, 2, 0, start)
        first_epic = file_store.get_all_epics()[0]

        seed_script.seed(file_store, 1, 2, 0, start)

        second_epic = file_store.get_all_epics()[1]
        assert second_epic.start_time == first_epic.end_time

    def test_main_writes_file(self, data_file, monkeypatch, capsys):
        monkeypatch.setattr(
            "sys.argv",
            ["seed", "--file", str(data_file), "--epics", "2", "--subtasks", "2", "--tasks", "3", "--seed", "1"],
        )

        seed_script.main()

        loaded = FileBackedTaskStore.load_from_file(data_file)
        assert len(loaded.get_all_epics()) == 2
        assert len(loaded.get_all_subtasks()) == 4
        assert len(loaded.get_all_tasks()) == 3
        assert "Seeding Complete" in capsys.readouterr().out

    def test_main_clear_replaces_data(self, data_file, monkeypatch):
        argv = ["seed", "--file", str(data_file), "--epics", "1", "--subtasks", "1", "--tasks", "1"]
        monkeypatch.setattr("sys.argv", argv)
        seed_script.main()

        monkeypatch.setattr("sys.argv", argv + ["--clear"])
        seed_script.main()

        loaded = FileBackedTaskStore.load_from_file(data_file)
        assert len(loaded.get_all_epics()) == 1
        assert len(loaded.get_all_tasks()) == 1
