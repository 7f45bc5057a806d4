"""Tests for the runtime environment registry.

Tests cover:
- Layer merge order and precedence
- Runtime mode detection at construction
- Lazy resolution and caching
- Immutability guard
- Size, membership and the forward cursor
- Custom defaults and sinks
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from unittest.mock import Mock, patch

import pytest

from tinyrt import create_environment
from tinyrt.runtime import (
    ENV_DEFAULTS,
    UNRESOLVED,
    CustomDefaults,
    DictSink,
    Environment,
    OsEnvironSink,
    RuntimeMode,
    set_custom_defaults,
)
from tinyrt.runtime.probes import PROBES
from tinyrt.utils.errors import ErrorCode, ImmutableWriteError


def _console_env(**kwargs) -> Environment:
    kwargs.setdefault("environ", {})
    kwargs.setdefault("interactive", True)
    return Environment(**kwargs)


class TestMerge:
    """Tests for layer merging."""

    def test_defaults_only(self):
        """With no ambient data the key set is exactly the compiled-in defaults."""
        env = _console_env()

        assert list(env) == list(ENV_DEFAULTS)
        assert len(env) == len(ENV_DEFAULTS)

    def test_ambient_keys_come_first(self):
        """Server then environ keys precede the compiled-in defaults."""
        env = Environment(
            server={"SERVER_A": "1", "SHARED": "server"},
            environ={"ENV_B": "2", "SHARED": "environ"},
            interactive=True,
        )

        keys = list(env)
        assert keys[:3] == ["SERVER_A", "SHARED", "ENV_B"]
        assert keys[3:] == list(ENV_DEFAULTS)

    def test_environ_overrides_server(self):
        """A process variable replaces a server variable of the same name."""
        env = Environment(
            server={"SHARED": "server"},
            environ={"SHARED": "environ"},
            interactive=True,
        )

        assert env["SHARED"] == "environ"

    def test_defaults_override_ambient(self):
        """Compiled-in defaults replace ambient values for the same key."""
        env = Environment(
            environ={"RUNTIME_TICK_LINE": "99", "FRAMEWORK_NAME": "other"},
            interactive=True,
        )

        assert env["RUNTIME_TICK_LINE"] == 10
        assert env["FRAMEWORK_NAME"] == "tinyrt"

    def test_default_replaces_ambient_value_with_lazy_probe(self):
        """An ambient HOSTNAME is shadowed by the lazily resolved default."""
        env = Environment(environ={"HOSTNAME": "ambient-host"}, interactive=True)

        assert env["HOSTNAME"] == platform.uname().node
        # Position of first appearance is kept.
        assert list(env)[0] == "HOSTNAME"

    def test_environ_defaults_to_os_environ(self, isolate_environment):
        """Without an explicit environ the process environment is read."""
        os.environ["TINYRT_TEST_MARKER"] = "present"

        env = Environment(interactive=True)

        assert env["TINYRT_TEST_MARKER"] == "present"

    def test_os_environ_is_snapshotted(self, isolate_environment):
        """Later changes to os.environ do not leak into a built registry."""
        env = Environment(interactive=True)
        os.environ["TINYRT_LATE_MARKER"] = "late"

        assert "TINYRT_LATE_MARKER" not in env


class TestMode:
    """Tests for runtime mode detection during construction."""

    def test_interactive_is_console(self):
        env = _console_env()

        assert env["RUNTIME_MODE"] == RuntimeMode.CONSOLE
        assert env.mode is RuntimeMode.CONSOLE

    def test_no_server_vars_is_console(self):
        """A process serving no request is treated as a console invocation."""
        env = Environment(environ={})

        assert env.mode is RuntimeMode.CONSOLE

    def test_request_is_web(self, web_server_vars):
        env = Environment(server=web_server_vars, environ={})

        assert env["RUNTIME_MODE"] == RuntimeMode.WEB
        assert env["RUNTIME_MODE"] == env["RUNTIME_MODE_WEB"]

    def test_rpc_request_field(self, web_server_vars):
        env = Environment(
            server=web_server_vars,
            environ={},
            request={"FRPC_METHOD": "FRPC_POST"},
        )

        assert env["RUNTIME_MODE"] == RuntimeMode.RPC

    def test_rpc_transport_method(self, web_server_vars):
        server = dict(web_server_vars, REQUEST_METHOD="FRPC_POST")

        env = Environment(server=server, environ={})

        assert env["RUNTIME_MODE"] == RuntimeMode.RPC

    def test_console_wins_over_rpc_marker(self):
        env = _console_env(request={"FRPC_METHOD": "FRPC_POST"})

        assert env["RUNTIME_MODE"] == RuntimeMode.CONSOLE

    def test_explicit_non_interactive_without_request_is_web(self):
        env = Environment(environ={}, interactive=False)

        assert env["RUNTIME_MODE"] == RuntimeMode.WEB

    def test_mode_constants_present(self):
        env = _console_env()

        assert env["RUNTIME_MODE_CONSOLE"] == RuntimeMode.CONSOLE
        assert env["RUNTIME_MODE_WEB"] == RuntimeMode.WEB
        assert env["RUNTIME_MODE_RPC"] == RuntimeMode.RPC


class TestLookup:
    """Tests for keyed lookup and lazy resolution."""

    def test_absent_key_returns_none(self):
        env = _console_env()

        assert env["NOT_A_KEY"] is None
        assert env.get("NOT_A_KEY") is None
        assert env.get("NOT_A_KEY", "fallback") == "fallback"

    def test_eager_values(self):
        env = _console_env()

        assert env["FRAMEWORK_NAME"] == "tinyrt"
        assert env["PYTHON_VERSION"] == platform.python_version()
        assert env["PYTHON_PLATFORM"] == sys.platform
        assert env["RUNTIME_TICK_LINE"] == 10

    def test_python_version_id(self):
        env = _console_env()
        info = sys.version_info

        assert env["PYTHON_VERSION_ID"] == info.major * 10000 + info.minor * 100 + info.micro

    def test_lazy_pid(self):
        env = _console_env()

        assert not env.is_resolved("PID")
        assert env["PID"] == os.getpid()
        assert env.is_resolved("PID")

    def test_lazy_platform_strings(self):
        env = _console_env()
        uname = platform.uname()

        assert env["SYSTEM_NAME"] == uname.system
        assert env["HOSTNAME"] == uname.node
        assert env["SYSTEM_VERSION_NAME"] == uname.release
        assert env["SYSTEM_VERSION_INFO"] == uname.version
        assert env["MACHINE_TYPE"] == uname.machine

    @pytest.mark.skipif(not hasattr(os, "getuid"), reason="POSIX only")
    def test_lazy_ids(self):
        env = _console_env()

        assert env["UID"] == os.getuid()
        assert env["GID"] == os.getgid()

    def test_memory_usage_is_positive_int(self):
        env = _console_env()

        value = env["RUNTIME_MEMORY_SIZE"]

        assert isinstance(value, int)
        assert value > 0

    def test_memory_usage_frozen_after_first_read(self):
        """The second read returns the cached value without probing again."""
        probe = Mock(side_effect=[1000, 2000])
        with patch.dict(PROBES, {"RUNTIME_MEMORY_SIZE": probe}):
            env = _console_env()
            first = env["RUNTIME_MEMORY_SIZE"]
            second = env["RUNTIME_MEMORY_SIZE"]

        assert first == second == 1000
        probe.assert_called_once_with()

    def test_computed_none_is_terminal(self):
        """A probe answering None is not asked again."""
        probe = Mock(return_value=None)
        with patch.dict(PROBES, {"USER": probe}):
            env = _console_env()
            assert env["USER"] is None
            assert env["USER"] is None

        probe.assert_called_once_with()
        assert env.is_resolved("USER")

    def test_backtrace_is_list_of_frames(self):
        env = _console_env()

        frames = env["RUNTIME_DEBUG_BACKTRACE"]

        assert isinstance(frames, list)
        assert frames
        assert all({"file", "line", "function"} <= set(frame) for frame in frames)
        assert any(frame["function"] == "test_backtrace_is_list_of_frames" for frame in frames)

    def test_python_executable_from_launcher_entry(self):
        env = _console_env(environ={"_": "/opt/bin/python3"})

        assert env["PYTHON_EXECUTABLE"] == "/opt/bin/python3"

    def test_python_executable_fallback(self):
        env = _console_env()

        assert env["PYTHON_EXECUTABLE"] == sys.executable

    def test_script_entries_are_consistent(self):
        env = _console_env()

        filename = env["SCRIPT_FILENAME"]
        if filename is not None:
            assert os.path.isabs(filename)
            assert env["SCRIPT_DIR"] == os.path.dirname(filename)

    def test_lookup_via_get_resolves(self):
        env = _console_env()

        assert env.get("PID") == os.getpid()


class TestImmutability:
    """Tests for the write/delete guard."""

    @pytest.mark.parametrize("key", ["PID", "RUNTIME_TICK_LINE", "NOT_A_KEY"])
    def test_setitem_rejected(self, key):
        env = _console_env()

        with pytest.raises(ImmutableWriteError) as exc_info:
            env[key] = "value"

        assert exc_info.value.code == ErrorCode.E810_IMMUTABLE_WRITE
        assert exc_info.value.key == key
        assert exc_info.value.operation == "set"

    @pytest.mark.parametrize("key", ["PID", "RUNTIME_TICK_LINE", "NOT_A_KEY"])
    def test_delitem_rejected(self, key):
        env = _console_env()

        with pytest.raises(ImmutableWriteError) as exc_info:
            del env[key]

        assert exc_info.value.operation == "unset"

    def test_set_and_unset_methods_rejected(self):
        env = _console_env()

        with pytest.raises(ImmutableWriteError):
            env.set("RUNTIME_TICK_LINE", 5)
        with pytest.raises(ImmutableWriteError):
            env.unset("RUNTIME_TICK_LINE")

    def test_error_is_runtime_error(self):
        env = _console_env()

        with pytest.raises(RuntimeError, match="read-only"):
            env["PID"] = 1

    def test_rejected_write_leaves_state_unchanged(self):
        env = _console_env()
        before = len(env)

        with pytest.raises(ImmutableWriteError):
            env["RUNTIME_TICK_LINE"] = 99
        with pytest.raises(ImmutableWriteError):
            del env["PID"]

        assert env["RUNTIME_TICK_LINE"] == 10
        assert "PID" in env
        assert len(env) == before
        assert not env.is_resolved("PID")

    def test_rejected_write_is_logged(self, caplog):
        env = _console_env()

        with caplog.at_level(logging.WARNING, logger="tinyrt"):
            with pytest.raises(ImmutableWriteError):
                env["PID"] = 1

        record = next(r for r in caplog.records if "read-only" in r.getMessage())
        assert record.event_type == "write_rejected"
        assert record.detail_key == "PID"


class TestSizeAndMembership:
    """Tests for count and existence checks."""

    def test_count_matches_len(self):
        env = _console_env(environ={"EXTRA": "1"})

        assert env.count() == len(env) == len(ENV_DEFAULTS) + 1

    def test_count_stable_after_resolution(self):
        env = _console_env()
        before = env.count()

        env.to_dict(resolve=True)

        assert env.count() == before

    def test_contains_unresolved_key(self):
        env = _console_env()

        assert "RUNTIME_MEMORY_SIZE" in env
        assert not env.is_resolved("RUNTIME_MEMORY_SIZE")
        assert "NOT_A_KEY" not in env


class TestCursor:
    """Tests for the forward cursor."""

    def _traverse(self, env: Environment) -> list[tuple[str, object]]:
        seen = []
        env.rewind()
        while env.valid():
            seen.append((env.key(), env.current()))
            env.next()
        return seen

    def test_full_traversal_visits_every_key_once(self):
        env = _console_env(environ={"EXTRA": "1"})

        keys = [key for key, _ in self._traverse(env)]

        assert keys == list(env)
        assert len(keys) == len(set(keys)) == env.count()

    def test_traversal_is_repeatable(self):
        env = _console_env()

        first = self._traverse(env)
        second = self._traverse(env)

        assert first == second

    def test_current_resolves_lazily(self):
        env = _console_env()

        values = dict(self._traverse(env))

        assert values["PID"] == os.getpid()
        assert env.is_resolved("PID")

    def test_cursor_and_lookup_share_cache(self):
        probe = Mock(side_effect=[111, 222, 333])
        with patch.dict(PROBES, {"RUNTIME_MEMORY_SIZE": probe}):
            env = _console_env()
            first = dict(self._traverse(env))["RUNTIME_MEMORY_SIZE"]
            second = dict(self._traverse(env))["RUNTIME_MEMORY_SIZE"]
            third = env["RUNTIME_MEMORY_SIZE"]

        assert first == second == third == 111
        probe.assert_called_once_with()

    def test_exhausted_cursor(self):
        env = _console_env()
        self._traverse(env)

        assert not env.valid()
        assert env.key() is None
        assert env.current() is None
        env.next()
        assert not env.valid()

    def test_rewind_restarts(self):
        env = _console_env()
        env.next()
        env.next()

        env.rewind()

        assert env.key() == list(ENV_DEFAULTS)[0]


class TestPythonIteration:
    """Tests for keys/values/items and to_dict."""

    def test_items_in_order(self):
        env = _console_env()

        assert [key for key, _ in env.items()] == env.keys()
        assert len(env.values()) == len(env)

    def test_values_resolved(self):
        env = _console_env()

        assert UNRESOLVED not in env.values()

    def test_to_dict_unresolved_as_none(self):
        env = _console_env()

        snapshot = env.to_dict()

        assert snapshot["PID"] is None
        assert snapshot["RUNTIME_TICK_LINE"] == 10
        assert not env.is_resolved("PID")

    def test_to_dict_resolved(self):
        env = _console_env()

        snapshot = env.to_dict(resolve=True)

        assert snapshot["PID"] == os.getpid()
        assert list(snapshot) == env.keys()

    def test_repr(self):
        env = _console_env()

        assert repr(env) == f"<Environment mode=console entries={len(ENV_DEFAULTS)}>"


class TestCustomDefaults:
    """Tests for allow-listed overrides."""

    def test_process_wide_override(self):
        set_custom_defaults({"RUNTIME_TICK_LINE": 42})

        env = _console_env()

        assert env["RUNTIME_TICK_LINE"] == 42

    def test_static_method_alias(self):
        Environment.set_custom_defaults({"RUNTIME_TICK_LINE": 7})

        assert _console_env()["RUNTIME_TICK_LINE"] == 7

    def test_non_allowed_key_ignored(self):
        set_custom_defaults({"PYTHON_VERSION": "9.9.9", "PID": 1})

        env = _console_env()

        assert env["PYTHON_VERSION"] == platform.python_version()
        assert env["PID"] == os.getpid()

    def test_existing_instances_unaffected(self):
        env = _console_env()

        set_custom_defaults({"RUNTIME_TICK_LINE": 42})

        assert env["RUNTIME_TICK_LINE"] == 10

    def test_explicit_store_replaces_process_store(self):
        set_custom_defaults({"RUNTIME_TICK_LINE": 42})

        env = _console_env(defaults=CustomDefaults({"RUNTIME_TICK_LINE": 3}))

        assert env["RUNTIME_TICK_LINE"] == 3

    def test_custom_defaults_do_not_add_keys(self):
        set_custom_defaults({"BRAND_NEW": "x"})

        env = _console_env()

        assert "BRAND_NEW" not in env
        assert len(env) == len(ENV_DEFAULTS)


class TestSinks:
    """Tests for publishing the merged view."""

    def test_sink_receives_merged_entries(self):
        sink = DictSink()

        env = _console_env(environ={"EXTRA": "1"}, sink=sink)

        assert sink.publish_count == 1
        assert list(sink.entries) == env.keys()
        assert sink.entries["RUNTIME_MODE"] == RuntimeMode.CONSOLE

    def test_no_sink_leaves_os_environ_alone(self, isolate_environment):
        os.environ.pop("FRAMEWORK_NAME", None)

        Environment(interactive=True)

        assert "FRAMEWORK_NAME" not in os.environ

    def test_os_environ_sink_on_custom_target(self):
        target: dict[str, str] = {}

        _console_env(sink=OsEnvironSink(target))

        assert target["FRAMEWORK_NAME"] == "tinyrt"
        assert target["RUNTIME_TICK_LINE"] == "10"
        assert target["RUNTIME_MODE"] == "console"
        assert "PID" not in target

    def test_create_environment_publishes(self, isolate_environment):
        env = create_environment(interactive=True)

        assert os.environ["FRAMEWORK_NAME"] == "tinyrt"
        assert os.environ["RUNTIME_MODE"] == env["RUNTIME_MODE"].value

    def test_create_environment_without_publish(self, isolate_environment):
        os.environ.pop("FRAMEWORK_VERSION", None)

        create_environment(interactive=True, publish=False)

        assert "FRAMEWORK_VERSION" not in os.environ

    def test_publish_skips_unrepresentable_request_values(self, isolate_environment):
        os.environ.pop("HTTP_X_TOKEN", None)

        env = create_environment(
            server={"REQUEST_METHOD": "GET", "HTTP_X_TOKEN": "a\x00b", "A=B": "1"}
        )

        assert env["HTTP_X_TOKEN"] == "a\x00b"
        assert "A=B" in env
        assert "HTTP_X_TOKEN" not in os.environ
        assert os.environ["RUNTIME_MODE"] == "web"


class TestLogging:
    """Tests for construction and resolution logging."""

    def test_construction_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="tinyrt"):
            _console_env()

        assert any("console mode" in record.getMessage() for record in caplog.records)

    def test_resolution_logged(self, caplog):
        env = _console_env()

        with caplog.at_level(logging.DEBUG, logger="tinyrt"):
            env["PID"]

        assert any(record.getMessage().startswith("Resolved PID") for record in caplog.records)
