import shutil
from pathlib import Path

from pathrepair.core.assembler import (
    PathAssembler,
    dedupe_entries,
    entry_key,
    is_under_home,
    split_path_value,
    trim_separator,
)
from pathrepair.types import DiscoveryResult


def _lookup(values=None):
    values = values or {}
    return lambda name: values.get(name)


def _dirs(root: Path, *names: str) -> list:
    created = []
    for name in names:
        path = root / name
        path.mkdir(parents=True, exist_ok=True)
        created.append(str(path))
    return created


def _discovery(**categories) -> DiscoveryResult:
    tools = categories.pop("tools", {})
    return DiscoveryResult(categories=categories, tools=tools)


def test_split_path_value_drops_blanks_and_quotes():
    assert split_path_value(' C:\\a ;;"C:\\Program Files\\b";') == ["C:\\a", "C:\\Program Files\\b"]
    assert split_path_value("") == []


def test_trim_separator_keeps_drive_roots():
    assert trim_separator("C:\\Tools\\") == "C:\\Tools"
    assert trim_separator("C:\\") == "C:\\"
    assert trim_separator("/") == "/"


def test_entry_key_ignores_case_and_trailing_separator():
    lookup = _lookup()
    assert entry_key("C:\\Windows\\System32\\", lookup) == entry_key("c:/windows/system32", lookup)


def test_entry_key_expands_references():
    lookup = _lookup({"SystemRoot": "C:\\Windows"})
    assert entry_key("%SystemRoot%\\system32", lookup) == entry_key("C:\\Windows\\System32", lookup)


def test_is_under_home_uses_path_boundaries():
    home = "C:\\Users\\bob"
    lookup = _lookup()
    assert is_under_home("C:\\Users\\bob\\.jdks\\jdk-21\\bin", home, lookup)
    assert is_under_home("c:/users/BOB/AppData", home, lookup)
    assert is_under_home("C:\\Users\\bob\\", home, lookup)
    assert not is_under_home("C:\\Users\\bobby\\bin", home, lookup)
    assert not is_under_home("C:\\Program Files\\Java\\jdk-21\\bin", home, lookup)
    assert not is_under_home("C:\\Users\\bob\\bin", "", lookup)


def test_duplicated_system32_appears_once_and_first(tmp_path):
    system32, tools = _dirs(tmp_path, "Windows/System32", "Tools")
    assembler = PathAssembler(str(tmp_path / "home"), env_lookup=_lookup())
    plan = assembler.assemble({"system": f"{system32};{system32};{tools}", "user": ""}, _discovery())
    assert plan.system_entries == [system32, tools]
    assert plan.duplicates == [system32]


def test_trailing_separator_variant_is_deduplicated(tmp_path):
    (bin_dir,) = _dirs(tmp_path, "bin")
    kept, duplicates, _missing = dedupe_entries([bin_dir + "/", bin_dir], env_lookup=_lookup())
    assert kept == [bin_dir]
    assert duplicates == [bin_dir]


def test_missing_directories_are_dropped(tmp_path):
    keep, gone = _dirs(tmp_path, "keep", "gone")
    discovery = _discovery(common_system=[keep, gone])
    shutil.rmtree(gone)
    plan = PathAssembler(str(tmp_path / "home"), env_lookup=_lookup()).assemble({}, discovery)
    assert plan.system_entries == [keep]
    assert gone in plan.missing
    assert gone not in plan.system_value


def test_home_paths_route_to_user_and_others_to_system(tmp_path):
    home = tmp_path / "home"
    home_java, sys_java, home_tool, sys_tool = _dirs(
        tmp_path, "home/.jdks/jdk-21/bin", "Java/jdk-17/bin", "home/tools/bin", "Program Files/Git/cmd"
    )
    discovery = _discovery(
        java_variants=[home_java, sys_java],
        tools={"rg": home_tool, "git": sys_tool},
    )
    plan = PathAssembler(str(home), env_lookup=_lookup()).assemble({}, discovery)
    assert plan.system_entries == [sys_java, sys_tool]
    assert plan.user_entries == [home_java, home_tool]


def test_category_concatenation_order(tmp_path):
    home = tmp_path / "home"
    (
        critical,
        existing_system,
        common,
        application,
        java_system,
        tool_system,
        user_specific,
        existing_user,
        java_user,
        tool_user,
    ) = _dirs(
        tmp_path,
        "critical",
        "existing_system",
        "common",
        "application",
        "java_system",
        "tool_system",
        "home/user_specific",
        "home/existing_user",
        "home/java_user",
        "home/tool_user",
    )
    discovery = _discovery(
        critical_system=[critical],
        common_system=[common],
        applications=[application],
        java_variants=[java_user, java_system],
        user_specific=[user_specific],
        tools={"b": tool_user, "a": tool_system},
    )
    plan = PathAssembler(str(home), env_lookup=_lookup()).assemble(
        {"system": existing_system, "user": existing_user}, discovery
    )
    assert plan.system_entries == [critical, existing_system, common, application, java_system, tool_system]
    assert plan.user_entries == [user_specific, existing_user, java_user, tool_user]
    assert plan.system_value == ";".join(plan.system_entries)


def test_user_specific_category_is_routed_by_category_not_prefix(tmp_path):
    outside, inside = _dirs(tmp_path, "outside", "home/inside")
    discovery = _discovery(user_specific=[outside], critical_system=[inside])
    plan = PathAssembler(str(tmp_path / "home"), env_lookup=_lookup()).assemble({}, discovery)
    assert plan.user_entries == [outside]
    assert plan.system_entries == [inside]


def test_existing_system_entries_under_home_stay_in_system(tmp_path):
    (home_bin,) = _dirs(tmp_path, "home/bin")
    plan = PathAssembler(str(tmp_path / "home"), env_lookup=_lookup()).assemble(
        {"system": home_bin, "user": ""}, _discovery()
    )
    assert plan.system_entries == [home_bin]
    assert plan.user_entries == []


def test_reference_entries_keep_original_form(tmp_path):
    (tools,) = _dirs(tmp_path, "tools")
    lookup = _lookup({"TOOLS": tools})
    plan = PathAssembler(str(tmp_path / "home"), env_lookup=lookup).assemble(
        {"system": f"%TOOLS%;{tools}", "user": ""}, _discovery()
    )
    assert plan.system_entries == ["%TOOLS%"]


def test_assembly_is_idempotent(tmp_path):
    home = tmp_path / "home"
    dirs = _dirs(tmp_path, "a", "b", "home/c")
    discovery = _discovery(common_system=[dirs[0]], java_variants=[dirs[2]], tools={"x": dirs[1]})
    assembler = PathAssembler(str(home), env_lookup=_lookup())
    current = {"system": f"{dirs[1]};{dirs[0]}", "user": dirs[2]}
    first = assembler.assemble(current, discovery)
    second = assembler.assemble(current, discovery)
    assert first.system_value == second.system_value
    assert first.user_value == second.user_value


def test_scope_selection_limits_output(tmp_path):
    system_dir, user_dir = _dirs(tmp_path, "sys", "home/usr")
    discovery = _discovery(critical_system=[system_dir], user_specific=[user_dir])
    plan = PathAssembler(str(tmp_path / "home"), env_lookup=_lookup()).assemble({}, discovery, scopes=["user"])
    assert plan.scopes == ["user"]
    assert plan.system_value == ""
    assert plan.user_entries == [user_dir]
