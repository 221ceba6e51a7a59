import pytest
from click.testing import CliRunner

from provisionctl import cluster
from provisionctl.cli import Invocation, dispatch, get_cli
from provisionctl.commands import create as create_cmd
from provisionctl.drivers import BUILTIN_DRIVERS
from provisionctl.errors import ClusterNameRequired, DriverError, DriverNotFound, DriverRequired
from provisionctl.models import ClusterDescriptor, ClusterStatus
from provisionctl.store import ClusterStore

from .conftest import FakeDriver, b64, write_plugin


def invoke(args):
    return CliRunner().invoke(get_cli(), args, obj=Invocation(tuple(args)))


def persisted(name="demo", driver_name="fake", status="Running"):
    descriptor = ClusterDescriptor(
        name=name,
        driver_name=driver_name,
        status=status,
        root_ca_cert=b64("CA"),
        client_certificate=b64("CERT"),
        client_key=b64("KEY"),
    )
    ClusterStore().store(descriptor)
    return descriptor


def test_create_new_cluster_with_driver_flags(home, fake_driver):
    result = dispatch(
        ["create", "--driver", "fake", "--node-count", "3", "--locations", "a",
         "--locations", "b", "--legacy-abac", "demo"],
        standalone_mode=False,
    )

    assert result.status == ClusterStatus.RUNNING.value
    (options, info), = fake_driver.calls
    assert options.int_options == {"node-count": 3}
    assert options.string_options == {"zone": "us-central1-a", "name": "demo"}
    assert options.string_slice_options == {"locations": ["a", "b"]}
    assert options.bool_options == {"legacy-abac": True}

    store = ClusterStore()
    assert store.check("demo")
    stored = store.get("demo")
    assert stored.driver_name == "fake"
    assert stored.endpoint == "10.0.0.1"
    assert stored.node_count == 3
    assert (home / "clusters" / "demo" / "ca.pem").read_bytes() == b"CA"


def test_driver_flag_defaults(home, fake_driver):
    dispatch(["create", "--driver=fake", "demo"], standalone_mode=False)

    (options, _), = fake_driver.calls
    assert options.int_options == {"node-count": 1}
    assert options.bool_options == {"legacy-abac": False}
    assert options.string_slice_options == {"locations": []}


def test_cluster_name_option_cannot_be_overridden(home, fake_driver, monkeypatch):
    schema = fake_driver.get_driver_create_options()
    schema.options["name"] = schema.options["zone"].model_copy(update={"value": "from-driver"})
    monkeypatch.setattr(fake_driver, "get_driver_create_options", lambda: schema)

    dispatch(["create", "--driver", "fake", "--name", "other", "demo"], standalone_mode=False)

    (options, _), = fake_driver.calls
    assert options.string_options["name"] == "demo"


def test_running_cluster_is_not_recreated(home, fake_driver):
    persisted()

    result = dispatch(["create", "--driver", "fake", "demo"], standalone_mode=False)

    assert result.status == "Running"
    assert fake_driver.calls == []


def test_existing_cluster_takes_precedence_over_driver_flag(home, fake_driver, monkeypatch):
    other = FakeDriver()
    monkeypatch.setitem(BUILTIN_DRIVERS, "other", lambda: other)

    def unexpected(*args, **kwargs):
        raise AssertionError("new_cluster must not be called for a persisted cluster")

    reconciled = []
    original = cluster.from_descriptor

    def from_descriptor(descriptor, addr, config_getter, store, driver=None):
        reconciled.append(descriptor.driver_name)
        return original(descriptor, addr, config_getter, store, driver)

    monkeypatch.setattr(cluster, "new_cluster", unexpected)
    monkeypatch.setattr(cluster, "from_descriptor", from_descriptor)
    persisted()

    dispatch(["create", "--driver", "other", "demo"], standalone_mode=False)

    assert reconciled == ["fake"]
    assert other.calls == []
    assert fake_driver.calls == []


def test_driver_is_read_from_persisted_cluster(home, fake_driver):
    persisted(status=ClusterStatus.ERROR.value)

    result = dispatch(["create", "demo"], standalone_mode=False)

    assert result.status == "Running"
    (options, info), = fake_driver.calls
    assert info.root_ca_cert == b64("CA")
    assert options.string_options["name"] == "demo"


def test_missing_driver_is_a_user_error(home):
    with pytest.raises(DriverRequired):
        dispatch(["create", "demo"], standalone_mode=False)


def test_missing_driver_shows_help(home):
    result = invoke(["create", "demo"])

    assert result.exit_code == 2
    assert "Driver name is required" in result.output
    assert "--driver" in result.output
    assert "Traceback" not in result.output


def test_missing_cluster_name_is_a_user_error(home, fake_driver):
    with pytest.raises(ClusterNameRequired):
        dispatch(["create", "--driver", "fake"], standalone_mode=False)
    assert fake_driver.calls == []

    result = invoke(["create", "--driver", "fake"])
    assert result.exit_code == 2
    assert "Cluster name is required" in result.output


def test_unknown_driver(home):
    with pytest.raises(DriverNotFound):
        dispatch(["create", "--driver", "does-not-exist", "demo"], standalone_mode=False)


def test_help_lists_driver_flags(home, fake_driver):
    result = invoke(["create", "--driver", "fake", "--help"])

    assert result.exit_code == 0
    assert "--node-count" in result.output
    assert "--legacy-abac" in result.output
    assert "--labels" not in result.output
    assert fake_driver.calls == []


def test_unknown_flag_is_rejected_after_schema_is_known(home, fake_driver):
    result = invoke(["create", "--driver", "fake", "--no-such-flag", "demo"])

    assert result.exit_code == 2
    assert "--no-such-flag" in result.output


def test_plugin_address_is_threaded_into_replay(home, monkeypatch):
    class Plugin:
        addr = "127.0.0.1:4242"
        stopped = False

        def stop(self):
            self.stopped = True

    plugin = Plugin()
    monkeypatch.setattr(create_cmd, "run_driver", lambda name: (FakeDriver(), plugin.addr, plugin))

    created = []

    class Recorder:
        name = "demo"

        def create(self):
            return "created"

    def new_cluster(driver_name, addr, name, config_getter, store):
        created.append((driver_name, addr, name, config_getter.get_config()))
        return Recorder()

    monkeypatch.setattr(cluster, "new_cluster", new_cluster)

    result = dispatch(["create", "--driver", "gke", "--zone", "eu", "demo"], standalone_mode=False)

    assert result == "created"
    (driver_name, addr, name, options), = created
    assert (driver_name, addr, name) == ("gke", "127.0.0.1:4242", "demo")
    assert options.string_options == {"zone": "eu", "name": "demo"}
    assert plugin.stopped


def test_failed_create_records_error_status(home, fake_driver, monkeypatch):
    def fail(options, info):
        raise DriverError("quota exceeded")

    monkeypatch.setattr(fake_driver, "create", fail)

    with pytest.raises(DriverError):
        dispatch(["create", "--driver", "fake", "demo"], standalone_mode=False)

    stored = ClusterStore().get("demo")
    assert stored.status == ClusterStatus.ERROR.value
    assert stored.driver_name == "fake"


def recording_run_driver(monkeypatch):
    started = []
    run_driver = create_cmd.run_driver

    def record(name):
        driver, addr, plugin = run_driver(name)
        started.append((name, plugin))
        return driver, addr, plugin

    monkeypatch.setattr(create_cmd, "run_driver", record)
    return started


def test_plugin_owner_is_started_when_driver_flag_differs(home, plugin_dir, monkeypatch):
    write_plugin(plugin_dir, "gke", """
        from provisionctl.plugin import serve
        from provisionctl.tests.conftest import FakeDriver

        serve(FakeDriver())
    """)
    persisted(driver_name="gke", status=ClusterStatus.ERROR.value)
    started = recording_run_driver(monkeypatch)

    result = dispatch(["create", "--driver", "import", "demo"], standalone_mode=False)

    assert result.status == ClusterStatus.RUNNING.value
    assert result.endpoint == "10.0.0.1"
    assert [name for name, _ in started] == ["import", "gke"]
    (_, plugin), = [entry for entry in started if entry[1] is not None]
    assert plugin.process.poll() is not None

    stored = ClusterStore().get("demo")
    assert stored.driver_name == "gke"
    assert stored.status == ClusterStatus.RUNNING.value


def test_running_cluster_does_not_start_its_owner(home, fake_driver, monkeypatch):
    persisted(driver_name="gke")
    started = recording_run_driver(monkeypatch)

    result = dispatch(["create", "--driver", "fake", "demo"], standalone_mode=False)

    assert result.status == "Running"
    assert [name for name, _ in started] == ["fake"]


def test_driver_option_named_like_create_option_is_ignored(home, fake_driver, monkeypatch):
    schema = fake_driver.get_driver_create_options()
    schema.options["driver"] = schema.options["zone"].model_copy(update={"value": "from-driver"})
    monkeypatch.setattr(fake_driver, "get_driver_create_options", lambda: schema)

    result = dispatch(["create", "--driver", "fake", "demo"], standalone_mode=False)

    assert result.status == ClusterStatus.RUNNING.value
    (options, _), = fake_driver.calls
    assert "driver" not in options.string_options


def test_persisted_driver_found_with_trailing_flag(home, fake_driver):
    persisted(status=ClusterStatus.ERROR.value)

    result = dispatch(["create", "demo", "--debug"], standalone_mode=False)

    assert result.status == ClusterStatus.RUNNING.value
    assert len(fake_driver.calls) == 1
