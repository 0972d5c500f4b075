"""Tests for the propagation task and the serial dispatcher."""

from __future__ import annotations

import threading
import time

import pytest

from workspace_sync import (
    ClassifiedChanges,
    ConfigFileMatcher,
    ExtensionRegistry,
    Language,
    PropagationTask,
    SerialDispatcher,
    SnapshotBuilder,
    SyncConfig,
)


@pytest.fixture
def builder(registry) -> SnapshotBuilder:
    return SnapshotBuilder(registry, ConfigFileMatcher.from_config(SyncConfig()))


def make_task(changes, builder, file_service, providers=()) -> PropagationTask:
    return PropagationTask(
        changes=changes,
        builder=builder,
        hierarchy_providers=list(providers),
        file_service=file_service,
    )


class TestPropagationTask:
    def test_empty_changes_send_nothing(self, builder, file_service):
        task = make_task(ClassifiedChanges(), builder, file_service)

        assert task.run() is None
        assert file_service.batches == []

    def test_one_batch_with_everything(self, builder, file_service, project, make_file):
        changes = ClassifiedChanges(
            changed_or_added=[make_file(project, "src/A.java"), make_file(project, "B.py")],
            removed=["file:///ws/app/C.java"],
        )

        params = make_task(changes, builder, file_service).run()

        assert file_service.batches == [params]
        assert params is not None
        assert params.removed_files == ["file:///ws/app/C.java"]
        assert [s.ide_relative_path for s in params.added_or_changed_files] == [
            "src/A.java",
            "B.py",
        ]

    def test_removals_only(self, builder, file_service):
        changes = ClassifiedChanges(removed=["file:///ws/app/C.java"])

        params = make_task(changes, builder, file_service).run()

        assert params is not None
        assert params.added_or_changed_files == []

    def test_config_json_fans_out_to_sub_projects(
        self, builder, file_service, project, make_file, make_project, make_hierarchy
    ):
        core = make_project(name="core", root_uri="file:///ws/app/core")
        web = make_project(name="web", root_uri="file:///ws/app/web")
        hierarchy = make_hierarchy({project.scope_id: [core, web]})
        changes = ClassifiedChanges(
            changed_or_added=[
                make_file(project, ".sonarlint/connectedMode.json", text="{}"),
                make_file(project, "src/A.java"),
            ]
        )

        params = make_task(changes, builder, file_service, [hierarchy]).run()

        assert params is not None
        snapshots = params.added_or_changed_files
        assert len(snapshots) == 4
        assert [s.config_scope_id for s in snapshots[2:]] == ["scope:core", "scope:web"]
        assert all(s.content == "{}" for s in snapshots[2:])
        assert all(s.ide_relative_path == "../.sonarlint/connectedMode.json" for s in snapshots[2:])

    def test_scanner_properties_are_not_fanned_out(
        self, builder, file_service, project, make_file, make_project, make_hierarchy
    ):
        core = make_project(name="core", root_uri="file:///ws/app/core")
        hierarchy = make_hierarchy({project.scope_id: [core]})
        changes = ClassifiedChanges(
            changed_or_added=[make_file(project, "sonar-project.properties", text="k=v")]
        )

        params = make_task(changes, builder, file_service, [hierarchy]).run()

        assert params is not None
        assert len(params.added_or_changed_files) == 1
        assert params.added_or_changed_files[0].content == "k=v"

    def test_fan_out_uses_each_files_own_project(
        self, builder, file_service, make_file, make_project, make_hierarchy
    ):
        first = make_project(name="first", root_uri="file:///ws/first")
        second = make_project(name="second", root_uri="file:///ws/second")
        child = make_project(name="child", root_uri="file:///ws/first/child")
        hierarchy = make_hierarchy({first.scope_id: [child]})
        changes = ClassifiedChanges(
            changed_or_added=[
                make_file(first, ".sonarlint/a.json"),
                make_file(second, ".sonarlint/b.json"),
            ]
        )

        params = make_task(changes, builder, file_service, [hierarchy]).run()

        assert params is not None
        duplicates = params.added_or_changed_files[2:]
        assert [(d.uri, d.config_scope_id) for d in duplicates] == [
            ("file:///ws/first/.sonarlint/a.json", "scope:child")
        ]

    def test_backend_failure_propagates(self, builder, file_service, project, make_file):
        file_service.fail = True
        changes = ClassifiedChanges(changed_or_added=[make_file(project, "A.java")])

        with pytest.raises(ConnectionError):
            make_task(changes, builder, file_service).run()

    def test_failing_collaborators_only_degrade_their_file(
        self, file_service, project, make_file
    ):
        class PickyLanguage:
            def language(self, file):
                if file.name == "Bad.java":
                    msg = "cannot parse"
                    raise ValueError(msg)
                return Language.JAVA

        class PickyClassifier:
            def is_test(self, file):
                if file.name == "Bad.java":
                    msg = "classifier crashed"
                    raise RuntimeError(msg)
                return False

        registry = ExtensionRegistry(
            language_providers=[PickyLanguage()], test_classifier=PickyClassifier()
        )
        builder = SnapshotBuilder(registry, ConfigFileMatcher.from_config(SyncConfig()))
        changes = ClassifiedChanges(
            changed_or_added=[
                make_file(project, "src/Bad.java"),
                make_file(project, "src/Ok.java"),
            ],
            removed=["file:///ws/app/Gone.java"],
        )

        params = make_task(changes, builder, file_service).run()

        assert file_service.batches == [params]
        assert params is not None
        assert params.removed_files == ["file:///ws/app/Gone.java"]
        bad, ok = params.added_or_changed_files
        assert (bad.detected_language, bad.is_test) == (None, False)
        assert ok.detected_language is Language.JAVA


class SlowService:
    """Records batch order; the first batch takes a while."""

    def __init__(self):
        self.order: list[str] = []
        self.threads: set[str] = set()

    def did_update_file_system(self, params) -> None:
        if not self.order:
            time.sleep(0.05)
        self.threads.add(threading.current_thread().name)
        self.order.extend(params.removed_files)


class TestSerialDispatcher:
    def test_tasks_run_in_submission_order(self, builder):
        service = SlowService()
        with SerialDispatcher("test-sync") as dispatcher:
            for i in range(10):
                changes = ClassifiedChanges(removed=[f"file:///ws/{i}"])
                dispatcher.submit(make_task(changes, builder, service))
            assert dispatcher.flush(timeout=5)

        assert service.order == [f"file:///ws/{i}" for i in range(10)]
        assert len(service.threads) == 1
        assert next(iter(service.threads)).startswith("test-sync")

    def test_failure_is_kept_on_future(self, builder, file_service, project, make_file):
        file_service.fail = True
        changes = ClassifiedChanges(changed_or_added=[make_file(project, "A.java")])
        with SerialDispatcher() as dispatcher:
            future = dispatcher.submit(make_task(changes, builder, file_service))

            assert isinstance(future.exception(timeout=5), ConnectionError)

    def test_failure_does_not_block_later_tasks(self, builder, file_service, project, make_file):
        file_service.fail = True
        failing = ClassifiedChanges(changed_or_added=[make_file(project, "A.java")])
        with SerialDispatcher() as dispatcher:
            dispatcher.submit(make_task(failing, builder, file_service)).exception(timeout=5)
            file_service.fail = False
            later = dispatcher.submit(
                make_task(ClassifiedChanges(removed=["file:///ws/x"]), builder, file_service)
            )

            assert later.result(timeout=5) is not None
        assert len(file_service.batches) == 1

    def test_flush_without_tasks(self):
        with SerialDispatcher() as dispatcher:
            assert dispatcher.flush(timeout=0.1)
