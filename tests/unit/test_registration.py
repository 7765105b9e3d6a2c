"""
Unit tests for config stanza registration.
"""

import json
import tomllib

import pytest

from skilldeploy.exceptions import ConfigRegistrationError
from skilldeploy.registration import JsonConfigFile, Stanza, TomlConfigFile

PLANNER = Stanza(name="agents.gsd-planner", body={"description": "Plans"})


def test_toml_upsert_creates_file(tmp_path):
    """Test registering into a missing config creates it."""
    path = tmp_path / "config.toml"

    TomlConfigFile().upsert(path, [PLANNER])

    assert path.read_text() == '[agents.gsd-planner]\ndescription = "Plans"\n'


def test_toml_upsert_is_idempotent(tmp_path):
    """Test registering twice yields one stanza."""
    path = tmp_path / "config.toml"
    config = TomlConfigFile()

    config.upsert(path, [PLANNER])
    first = path.read_text()
    config.upsert(path, [PLANNER])

    assert path.read_text() == first
    assert first.count("[agents.gsd-planner]") == 1


def test_toml_upsert_replaces_in_place(tmp_path):
    """Test an existing stanza is replaced without moving its neighbours."""
    path = tmp_path / "config.toml"
    path.write_text(
        'a = 1\n\n[agents.gsd-planner]\ndescription = "old"\n\n[other]\nb = 2\n'
    )

    TomlConfigFile().upsert(
        path, [Stanza(name="agents.gsd-planner", body={"description": "new"})]
    )

    assert path.read_text() == (
        'a = 1\n\n[agents.gsd-planner]\ndescription = "new"\n\n[other]\nb = 2\n'
    )


def test_toml_remove_restores_original(tmp_path):
    """Test add then remove leaves unrelated stanzas byte-identical."""
    original = 'model = "o3"\n\n[mcp_servers.docs]\ncommand = "docs"\n'
    path = tmp_path / "config.toml"
    path.write_text(original)
    config = TomlConfigFile()

    config.upsert(path, [PLANNER, Stanza(name="agents.gsd-helper", body={"x": "y"})])
    assert path.read_text().startswith(original)
    assert tomllib.loads(path.read_text())["agents"]["gsd-helper"] == {"x": "y"}

    removed = config.remove(path, ["agents.gsd-planner", "agents.gsd-helper"])

    assert removed == ["agents.gsd-planner", "agents.gsd-helper"]
    assert path.read_text() == original


def test_toml_remove_puts_back_replaced_stanza(tmp_path):
    """Test a stanza that overwrote the user's own definition restores it."""
    original = 'a = 1\n\n[agents.gsd-planner]\ndescription = "mine"\n\n[other]\nb = 2\n'
    path = tmp_path / "config.toml"
    path.write_text(original)
    config = TomlConfigFile()

    replaced = config.upsert(path, [PLANNER])
    assert replaced == {"agents.gsd-planner": {"description": "mine"}}
    assert config.upsert(path, [PLANNER]) == {}

    removed = config.remove(path, ["agents.gsd-planner"], restore=replaced)

    assert removed == ["agents.gsd-planner"]
    assert path.read_text() == original


def test_toml_remove_missing_stanza_is_noop(tmp_path):
    """Test removing something never registered changes nothing."""
    path = tmp_path / "config.toml"
    path.write_text("a = 1\n")
    config = TomlConfigFile()

    assert config.remove(path, ["agents.gsd-planner"]) == []
    assert config.remove(tmp_path / "absent.toml", ["agents.gsd-planner"]) == []
    assert path.read_text() == "a = 1\n"


def test_toml_invalid_config_is_rejected(tmp_path):
    """Test an unparseable config is never edited."""
    path = tmp_path / "config.toml"
    path.write_text("[[[ nope")
    config = TomlConfigFile()

    with pytest.raises(ConfigRegistrationError):
        config.check(path)
    with pytest.raises(ConfigRegistrationError):
        config.upsert(path, [PLANNER])
    assert path.read_text() == "[[[ nope"


def test_toml_inline_definition_is_rejected(tmp_path):
    """Test a stanza defined as an inline table cannot be replaced safely."""
    path = tmp_path / "config.toml"
    original = 'agents = { gsd-planner = { description = "x" } }\n'
    path.write_text(original)

    with pytest.raises(ConfigRegistrationError):
        TomlConfigFile().upsert(path, [PLANNER])
    assert path.read_text() == original


def test_toml_multiline_values_round_trip(tmp_path):
    """Test multi-line string bodies are registered exactly."""
    path = tmp_path / "config.toml"
    stanza = Stanza(name="agents.gsd-planner", body={"notes": "line one\nline two\n"})

    TomlConfigFile().upsert(path, [stanza])

    assert tomllib.loads(path.read_text())["agents"]["gsd-planner"] == stanza.body


def test_toml_is_blank(tmp_path):
    path = tmp_path / "config.toml"
    config = TomlConfigFile()

    config.upsert(path, [PLANNER])
    assert not config.is_blank(path)
    config.remove(path, ["agents.gsd-planner"])
    assert config.is_blank(path)


def test_json_upsert_and_remove_keep_other_keys(tmp_path):
    """Test JSON registration only touches its own key."""
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"theme": "dark", "model": "opus"}))
    config = JsonConfigFile()
    stanza = Stanza(name="statusLine", body={"type": "command", "command": "node x.js"})

    config.upsert(path, [stanza])
    data = json.loads(path.read_text())
    assert list(data) == ["theme", "model", "statusLine"]
    assert data["statusLine"] == stanza.body

    assert config.remove(path, ["statusLine"]) == ["statusLine"]
    assert json.loads(path.read_text()) == {"theme": "dark", "model": "opus"}
    assert config.remove(path, ["statusLine"]) == []


def test_json_remove_puts_back_replaced_value(tmp_path):
    """Test a key that overwrote the user's own value restores it."""
    original = '{"statusLine": {"type": "command", "command": "my-own-line"}, "theme": "dark"}'
    path = tmp_path / "settings.json"
    path.write_text(original)
    config = JsonConfigFile()
    stanza = Stanza(name="statusLine", body={"type": "command", "command": "node x.js"})

    replaced = config.upsert(path, [stanza])
    assert replaced == {"statusLine": {"type": "command", "command": "my-own-line"}}
    assert json.loads(path.read_text())["statusLine"] == stanza.body

    assert config.remove(path, ["statusLine"], restore=replaced) == ["statusLine"]
    assert path.read_text() == original
    assert not config.is_blank(path)


@pytest.mark.parametrize(
    "original",
    [
        '{"theme": "dark", "name": "café"}\n',
        '{\n    "theme": "dark",\n    "name": "café"\n}',
        '{\n\t"theme": "dark"\n}\n',
    ],
)
def test_json_keeps_file_style(tmp_path, original):
    """Test indent, trailing newline and non-ASCII text survive an edit."""
    path = tmp_path / "settings.json"
    path.write_text(original, encoding="utf-8")
    config = JsonConfigFile()

    config.upsert(path, [Stanza(name="statusLine", body={"type": "command"})])
    edited = path.read_text(encoding="utf-8")
    assert "\\u00e9" not in edited
    assert edited.endswith("\n") == original.endswith("\n")

    config.remove(path, ["statusLine"])

    assert path.read_text(encoding="utf-8") == original


def test_json_new_file_is_indented(tmp_path):
    path = tmp_path / "settings.json"

    JsonConfigFile().upsert(path, [Stanza(name="statusLine", body={"type": "command"})])

    assert path.read_text() == '{\n  "statusLine": {\n    "type": "command"\n  }\n}\n'


@pytest.mark.parametrize("content", ["{oops", "[1, 2]"])
def test_json_invalid_config_is_rejected(tmp_path, content):
    """Test a settings file that is not a JSON object is never edited."""
    path = tmp_path / "settings.json"
    path.write_text(content)

    with pytest.raises(ConfigRegistrationError):
        JsonConfigFile().upsert(path, [Stanza(name="statusLine", body={})])
    assert path.read_text() == content


def test_unsupported_stanza_name(tmp_path):
    """Test stanza names must be plain dotted keys."""
    with pytest.raises(ConfigRegistrationError):
        TomlConfigFile().upsert(
            tmp_path / "config.toml", [Stanza(name="agents.has space", body={})]
        )
