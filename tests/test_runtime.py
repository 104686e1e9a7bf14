"""Tests for the Lua runtime wrapper (requires lupa)."""

import pytest

from ldoc_launcher.errors import PathSetupError, RuntimeInitError
from ldoc_launcher.runtime import (
    configure_search_paths,
    create_runtime,
    current_search_paths,
    engine_module_name,
    publish_arguments,
    release_runtime,
)
from ldoc_launcher.search_paths import (
    LUA_CPATH_TEMPLATES,
    LUA_PATH_TEMPLATES,
    native_extension,
    render_templates,
)


@pytest.fixture
def state():
    state = create_runtime()
    yield state
    release_runtime(state)


class TestEngineModuleName:
    """Tests for engine_module_name()."""

    def test_default_engine(self):
        assert engine_module_name(None) == "lupa"
        assert engine_module_name("") == "lupa"

    def test_short_name(self):
        assert engine_module_name("lua54") == "lupa.lua54"

    def test_qualified_name(self):
        assert engine_module_name("lupa.luajit21") == "lupa.luajit21"


class TestCreateRuntime:
    """Tests for create_runtime() and release_runtime()."""

    def test_standard_libraries_are_open(self, state):
        assert state.lua.eval("type(string.format)") == "function"
        assert state.lua.eval("type(io.open)") == "function"
        assert state.lua.eval("type(os.time)") == "function"
        assert state.lua.eval("type(package.path)") == "string"

    def test_version_is_major_minor(self, state):
        major, minor = state.version.split(".")
        assert major.isdigit() and minor.isdigit()

    def test_unknown_engine_raises(self):
        with pytest.raises(RuntimeInitError) as exc_info:
            create_runtime("no_such_engine")
        assert "lupa.no_such_engine" in str(exc_info.value)

    def test_release_runs_finalizers(self):
        state = create_runtime()
        lua = state.lua
        lua.execute("do local t = setmetatable({}, { __gc = function() finalized = true end }) end")

        release_runtime(state)

        assert lua.globals()["finalized"] is True

    def test_release_is_idempotent(self):
        state = create_runtime()
        release_runtime(state)
        assert state.released
        release_runtime(state)
        assert state.released


class TestPublishArguments:
    """Tests for publish_arguments()."""

    def test_arguments_are_zero_indexed(self, state):
        publish_arguments(state, ["app", "a", "b", "c"])

        lua = state.lua
        assert [lua.eval(f"arg[{i}]") for i in range(4)] == ["app", "a", "b", "c"]
        assert lua.eval("#arg") == 3
        assert lua.eval("arg[4]") is None

    def test_program_name_only(self, state):
        publish_arguments(state, ["app"])
        assert state.lua.eval("arg[0]") == "app"
        assert state.lua.eval("#arg") == 0

    def test_non_ascii_argument(self, state):
        publish_arguments(state, ["app", "Zoë"])
        assert state.lua.eval("arg[1]") == "Zoë"


class TestConfigureSearchPaths:
    """Tests for configure_search_paths()."""

    def test_builtin_templates_in_order(self, state):
        configure_search_paths(state, "/opt/lua", sep="/")
        path, cpath = current_search_paths(state)

        version = state.version
        ext = native_extension()
        expected_path = [
            "/opt/lua/" + t for t in render_templates(LUA_PATH_TEMPLATES, version, ext, "/")
        ]
        expected_cpath = [
            "/opt/lua/" + t for t in render_templates(LUA_CPATH_TEMPLATES, version, ext, "/")
        ]
        assert path.split(";") == expected_path
        assert cpath.split(";") == expected_cpath

    def test_first_entry_of_each_list(self, state):
        configure_search_paths(state, "/opt/lua", sep="/")
        path, cpath = current_search_paths(state)
        assert path.startswith("/opt/lua/bin/lua/?.lua;")
        assert cpath.startswith(f"/opt/lua/bin/?.{native_extension()};")

    def test_redundant_separators_collapse_at_join(self, state):
        configure_search_paths(
            state, "/opt/lua///",
            path_templates=["//bin/?.lua//", "share/?.lua"],
            cpath_templates=["/lib/?.so"],
            sep="/",
        )
        path, cpath = current_search_paths(state)
        assert path == "/opt/lua/bin/?.lua;/opt/lua/share/?.lua"
        assert cpath == "/opt/lua/lib/?.so"

    def test_inner_separators_are_kept(self, state):
        configure_search_paths(
            state, "/opt/lua",
            path_templates=["bin//lua/?.lua"],
            cpath_templates=[],
            sep="/",
        )
        path, cpath = current_search_paths(state)
        assert path == "/opt/lua/bin//lua/?.lua"
        assert cpath == ""

    def test_windows_separator(self, state):
        configure_search_paths(
            state, "C:\\OneLuaPro\\",
            path_templates=["\\bin\\lua\\?.lua", ".\\?.lua"],
            cpath_templates=["bin\\?.dll\\"],
            sep="\\",
        )
        path, cpath = current_search_paths(state)
        assert path == "C:\\OneLuaPro\\bin\\lua\\?.lua;C:\\OneLuaPro\\.\\?.lua"
        assert cpath == "C:\\OneLuaPro\\bin\\?.dll"

    def test_filesystem_root(self, state):
        configure_search_paths(
            state, "/", path_templates=["bin/?.lua"], cpath_templates=["bin/?.so"], sep="/",
        )
        path, cpath = current_search_paths(state)
        assert path == "/bin/?.lua"
        assert cpath == "/bin/?.so"

    def test_non_ascii_install_root(self, state):
        configure_search_paths(
            state, "/home/zoë/lua", path_templates=["bin/?.lua"], cpath_templates=[], sep="/",
        )
        path, _ = current_search_paths(state)
        assert path == "/home/zoë/lua/bin/?.lua"

    def test_malformed_template_raises_path_setup_error(self, state):
        with pytest.raises(PathSetupError) as exc_info:
            configure_search_paths(
                state, "/opt/lua", path_templates=[1, 2], cpath_templates=[], sep="/",
            )
        message = str(exc_info.value)
        assert "attempt to index a number value" in message
        assert "\n" not in message
        assert "stack traceback" not in message

    def test_failed_setup_leaves_paths_untouched(self, state):
        before = current_search_paths(state)
        with pytest.raises(PathSetupError):
            configure_search_paths(
                state, "/opt/lua", path_templates=[1], cpath_templates=[], sep="/",
            )
        assert current_search_paths(state) == before

    def test_modules_resolve_from_install_tree(self, state, tmp_path):
        """require() finds modules under <root>/share/lua/<version>."""
        module_dir = tmp_path / "share" / "lua" / state.version
        module_dir.mkdir(parents=True)
        (module_dir / "greeting.lua").write_text('return { text = "hello" }\n')

        configure_search_paths(state, str(tmp_path))

        assert state.lua.eval('require("greeting").text') == "hello"
