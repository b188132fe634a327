"""Unit tests for workload variants and the test registry."""

from array import array

import pytest

from common.models.settings import ReplicationConfig, TestCase, TestSettings, WorkloadKind
from harness.exceptions import RemoteError, SetupError, TeardownError
from harness.workloads import (
    DEFAULT_TEST_CASES,
    WORKLOADS,
    DocumentWorkload,
    PrototypeStateWorkload,
    ReplicatedLogWorkload,
    case_name,
    create_workload,
    load_test_plan,
    parse_test_case,
)


def settings(requests: int = 3, threads: int = 2, servers: int = 3, **config) -> TestSettings:
    return TestSettings(
        number_of_requests=requests,
        number_of_threads=threads,
        number_of_servers=servers,
        config=ReplicationConfig(**config),
    )


def samples(count: int) -> memoryview:
    return memoryview(array("d", [0.0] * count))


class TestReplicatedLogWorkload:
    """Tests for the replicated log workload."""

    @pytest.mark.parametrize(
        "test_settings,expected",
        [
            (settings(threads=1, write_concern=2, wait_for_sync=True), "insert-c1-r3-wc2-ws"),
            (settings(threads=100, write_concern=2), "insert-c100-r3-wc2"),
            (settings(threads=10, servers=5, write_concern=3), "insert-c10-r5-wc3"),
        ],
    )
    def test_name(self, test_settings, expected):
        assert ReplicatedLogWorkload().name(test_settings) == expected

    def test_setup(self, mock_remote):
        test_settings = settings()

        ReplicatedLogWorkload().setup(mock_remote, 550, test_settings)

        mock_remote.create_replicated_log.assert_called_once_with(550, test_settings)
        mock_remote.wait_for_replicated_log.assert_called_once_with(550)

    def test_setup_drops_log_when_wait_fails(self, mock_remote):
        """Test that a log which never became ready is removed."""
        mock_remote.wait_for_replicated_log.side_effect = RemoteError("waiting for log 550")

        with pytest.raises(RemoteError):
            ReplicatedLogWorkload().setup(mock_remote, 550, settings())

        mock_remote.drop_replicated_log.assert_called_once_with(550)

    def test_worker_payloads(self, mock_remote):
        """Test one insert per request with worker and index in the entry."""
        view = samples(3)

        ReplicatedLogWorkload().run_worker(mock_remote, 9, settings(), 1, view)

        entries = [call.args for call in mock_remote.insert_log_entry.call_args_list]
        assert entries == [
            (9, {"client": 1, "index": 0}),
            (9, {"client": 1, "index": 1}),
            (9, {"client": 1, "index": 2}),
        ]
        assert all(latency > 0 for latency in view)

    def test_worker_stops_on_first_error(self, mock_remote):
        mock_remote.insert_log_entry.side_effect = [None, RemoteError("inserting")]
        view = samples(3)

        with pytest.raises(RemoteError):
            ReplicatedLogWorkload().run_worker(mock_remote, 9, settings(), 0, view)

        assert view[0] > 0
        assert view[1] == 0.0
        assert view[2] == 0.0

    def test_teardown(self, mock_remote):
        ReplicatedLogWorkload().teardown(mock_remote, 551)

        mock_remote.drop_replicated_log.assert_called_once_with(551)

    def test_teardown_failure(self, mock_remote):
        mock_remote.drop_replicated_log.side_effect = RemoteError("dropping log 551", status_code=500)

        with pytest.raises(TeardownError, match="could not drop log 551"):
            ReplicatedLogWorkload().teardown(mock_remote, 551)


class TestPrototypeStateWorkload:
    """Tests for the prototype state workload."""

    def test_name(self):
        test_settings = settings(threads=10, write_concern=2, wait_for_sync=True)

        assert PrototypeStateWorkload().name(test_settings) == "proto-insert-c10-r3-wc2-ws"

    def test_setup_order(self, mock_remote):
        """Test availability check, creation and readiness wait."""
        test_settings = settings()

        PrototypeStateWorkload().setup(mock_remote, 560, test_settings)

        assert [call[0] for call in mock_remote.method_calls] == [
            "check_prototype_state_available",
            "create_replicated_state",
            "wait_for_prototype_state",
        ]
        mock_remote.create_replicated_state.assert_called_once_with(560, test_settings, "prototype")

    def test_setup_stops_when_unavailable(self, mock_remote):
        mock_remote.check_prototype_state_available.side_effect = RemoteError("checking")

        with pytest.raises(RemoteError):
            PrototypeStateWorkload().setup(mock_remote, 560, settings())

        mock_remote.create_replicated_state.assert_not_called()

    def test_worker_keys_are_unique(self, mock_remote):
        """Test that workers never write the same key."""
        workload = PrototypeStateWorkload()
        for worker in range(2):
            workload.run_worker(mock_remote, 4, settings(), worker, samples(3))

        keys = [call.args[1] for call in mock_remote.set_prototype_state_key.call_args_list]
        assert len(keys) == 6
        assert len(set(keys)) == 6
        assert keys[0] == "key-0-0"
        assert keys[-1] == "key-1-2"

    def test_teardown_leaves_state(self, mock_remote):
        PrototypeStateWorkload().teardown(mock_remote, 4)

        assert mock_remote.method_calls == []


class TestDocumentWorkload:
    """Tests for the document workload."""

    @pytest.mark.parametrize(
        "test_settings,expected",
        [
            (settings(threads=1, write_concern=2), "doc-insert-c1-r3-wc2-s1-v2"),
            (
                settings(threads=10, write_concern=2, number_of_shards=3, replication_version="1"),
                "doc-insert-c10-r3-wc2-s3-v1",
            ),
            (settings(threads=10, batch_size=100), "doc-insert-c10-r3-wc1-s1-b100-v2"),
            (settings(threads=10, document_size=1024), "doc-insert-c10-r3-wc1-s1-ds1024-v2"),
            (
                settings(threads=10, batch_size=5, document_size=128, wait_for_sync=True),
                "doc-insert-c10-r3-wc1-s1-b5-ds128-ws-v2",
            ),
        ],
    )
    def test_name(self, test_settings, expected):
        assert DocumentWorkload().name(test_settings) == expected

    def test_setup_creates_database_and_collection(self, mock_remote):
        workload = DocumentWorkload()
        test_settings = settings(write_concern=2, replication_version="1")

        workload.setup(mock_remote, 1, test_settings)

        mock_remote.create_database.assert_called_once_with("doc-insert-c2-r3-wc2-s1-v1", "1")
        mock_remote.create_collection.assert_called_once_with(
            "doc-insert-c2-r3-wc2-s1-v1", "c", test_settings
        )
        assert workload.database == "doc-insert-c2-r3-wc2-s1-v1"

    def test_database_failure(self, mock_remote):
        mock_remote.create_database.side_effect = RemoteError("creating database")
        workload = DocumentWorkload()

        with pytest.raises(SetupError, match="could not create database"):
            workload.setup(mock_remote, 1, settings())

        mock_remote.create_collection.assert_not_called()
        mock_remote.drop_database.assert_not_called()
        assert workload.database is None

    def test_collection_failure_drops_database(self, mock_remote):
        """Test that a half-provisioned database is removed again."""
        mock_remote.create_collection.side_effect = RemoteError("creating collection")
        workload = DocumentWorkload()

        with pytest.raises(SetupError, match="could not create collection"):
            workload.setup(mock_remote, 1, settings())

        mock_remote.drop_database.assert_called_once_with("doc-insert-c2-r3-wc1-s1-v2")
        assert workload.database is None

    def test_worker_batches(self, mock_remote):
        """Test batch size and document shape of each request."""
        workload = DocumentWorkload()
        workload.setup(mock_remote, 1, settings(batch_size=4, document_size=16))

        workload.run_worker(mock_remote, 1, settings(batch_size=4, document_size=16), 3, samples(3))

        calls = mock_remote.insert_documents.call_args_list
        assert len(calls) == 3
        database, collection, documents = calls[1].args
        assert database == workload.database
        assert collection == "c"
        assert [doc["batchIndex"] for doc in documents] == [0, 1, 2, 3]
        assert {doc["threadNo"] for doc in documents} == {3}
        assert {doc["index"] for doc in documents} == {1}
        assert all(len(doc["value"]) == 16 for doc in documents)

    def test_worker_requires_setup(self, mock_remote):
        with pytest.raises(RuntimeError, match="before setup"):
            DocumentWorkload().run_worker(mock_remote, 1, settings(), 0, samples(3))

    def test_teardown_drops_database(self, mock_remote):
        workload = DocumentWorkload()
        workload.setup(mock_remote, 1, settings())

        workload.teardown(mock_remote, 1)

        mock_remote.drop_database.assert_called_once_with("doc-insert-c2-r3-wc1-s1-v2")
        assert workload.database is None

    def test_teardown_failure_clears_database(self, mock_remote):
        """Test that a failed drop is reported once and not retried."""
        mock_remote.drop_database.side_effect = RemoteError("dropping database")
        workload = DocumentWorkload()
        workload.setup(mock_remote, 1, settings())

        with pytest.raises(TeardownError):
            workload.teardown(mock_remote, 1)

        assert workload.database is None

    def test_teardown_without_setup(self, mock_remote):
        DocumentWorkload().teardown(mock_remote, 1)

        mock_remote.drop_database.assert_not_called()


class TestRegistry:
    """Tests for the built-in matrix and test plan loading."""

    def test_create_workload(self):
        assert isinstance(create_workload(WorkloadKind.DOCUMENT), DocumentWorkload)
        assert isinstance(create_workload("replicated-log"), ReplicatedLogWorkload)
        assert create_workload("document") is not create_workload("document")

    def test_registry_keyed_by_kind(self):
        """Test that every workload class is registered under its own kind."""
        assert set(WORKLOADS) == set(WorkloadKind)
        for kind, workload_class in WORKLOADS.items():
            assert workload_class.kind == kind
            assert create_workload(kind).kind == kind

    def test_unknown_workload(self):
        with pytest.raises(ValueError):
            create_workload("graph")

    def test_default_matrix(self):
        """Test the built-in matrix covers every workload kind."""
        kinds = {case.workload for case in DEFAULT_TEST_CASES}

        assert kinds == set(WorkloadKind)
        assert len(DEFAULT_TEST_CASES) == 24

    def test_default_matrix_names_unique(self):
        names = [case_name(case) for case in DEFAULT_TEST_CASES]

        assert len(names) == len(set(names))

    def test_default_matrix_first_case(self):
        first = DEFAULT_TEST_CASES[0]

        assert first.workload == WorkloadKind.REPLICATED_LOG
        assert first.settings.number_of_requests == 1000
        assert case_name(first) == "insert-c1-r3-wc2-ws"

    def test_parse_test_case_json(self):
        case = parse_test_case(
            "replicated-log",
            '{"numberOfRequests": 50, "numberOfThreads": 4, "config": {"writeConcern": 2}}',
        )

        assert case.workload == WorkloadKind.REPLICATED_LOG
        assert case.settings.total_requests == 200
        assert case.settings.config.write_concern == 2

    def test_parse_test_case_yaml(self):
        case = parse_test_case("document", "{numberOfRequests: 5, numberOfThreads: 1}")

        assert case.settings.number_of_servers == 3

    def test_parse_test_case_rejects_scalar(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            parse_test_case("document", "42")

    def test_parse_test_case_validates(self):
        with pytest.raises(ValueError):
            parse_test_case("document", "{numberOfRequests: 0, numberOfThreads: 1}")

    def test_load_test_plan(self, temp_dir):
        """Test loading a YAML test matrix."""
        path = temp_dir / "plan.yaml"
        path.write_text(
            "tests:\n"
            "  - workload: prototype-state\n"
            "    settings:\n"
            "      numberOfRequests: 100\n"
            "      numberOfThreads: 10\n"
            "      config:\n"
            "        writeConcern: 2\n"
            "  - workload: document\n"
            "    settings:\n"
            "      numberOfRequests: 10\n"
            "      numberOfThreads: 1\n"
            "      config:\n"
            "        batchSize: 10\n"
            "        replicationVersion: '1'\n"
        )

        cases = load_test_plan(path)

        assert [case.workload for case in cases] == [
            WorkloadKind.PROTOTYPE_STATE,
            WorkloadKind.DOCUMENT,
        ]
        assert case_name(cases[1]) == "doc-insert-c1-r3-wc1-s1-b10-v1"
        assert isinstance(cases[0], TestCase)

    def test_load_test_plan_without_tests(self, temp_dir):
        path = temp_dir / "plan.yaml"
        path.write_text("cases: []\n")

        with pytest.raises(ValueError, match="no 'tests' list"):
            load_test_plan(path)
