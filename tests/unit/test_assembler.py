"""
Unit tests for configuration key naming and snapshot assembly.
"""

import pytest

from keyvault_config.assembler import SnapshotAssembler, default_name_encoder
from keyvault_config.models import LoadedEntry, SecretValue


@pytest.mark.unit
class TestNameEncoding:
    """Test secret name to configuration key mapping."""

    def test_default_encoder_replaces_double_dash(self):
        assert default_name_encoder("Section--Secret1") == "Section:Secret1"
        assert default_name_encoder("a--b--c") == "a:b:c"
        assert default_name_encoder("single-dash") == "single-dash"

    def test_key_without_prefix(self):
        assembler = SnapshotAssembler(section_prefix="")
        assert assembler.config_key("Section--Secret1") == "Section:Secret1"

    def test_blank_prefix_is_ignored(self):
        assembler = SnapshotAssembler(section_prefix="   ")
        assert assembler.config_key("Secret1") == "Secret1"

    def test_prefix_is_prepended(self):
        assembler = SnapshotAssembler(section_prefix="secrets")
        assert assembler.config_key("Secret1") == "secrets:Secret1"

    def test_encoder_applies_to_prefix(self):
        assembler = SnapshotAssembler(section_prefix="app--secrets")
        assert assembler.config_key("Secret1") == "app:secrets:Secret1"

    def test_map_renames_in_selective_mode(self):
        assembler = SnapshotAssembler(
            section_prefix="secrets", secret_map={"Secret1": "Db--Password"}, selective=True
        )
        assert assembler.config_key("Secret1") == "secrets:Db:Password"
        assert assembler.config_key("Secret2") == "secrets:Secret2"

    def test_map_ignored_in_full_mode(self):
        assembler = SnapshotAssembler(secret_map={"Secret1": "Renamed"}, selective=False)
        assert assembler.config_key("Secret1") == "Secret1"

    def test_custom_encoder(self):
        assembler = SnapshotAssembler(name_encoder=str.upper, section_prefix="s")
        assert assembler.config_key("secret") == "S:SECRET"


@pytest.mark.unit
class TestAssemble:
    """Test snapshot assembly from reused and fetched values."""

    def test_combines_reused_and_fetched(self, at):
        assembler = SnapshotAssembler(section_prefix="")
        reused = {"Secret1": LoadedEntry("Secret1", "Value1", at(0))}

        snapshot = assembler.assemble(reused, [SecretValue("Secret2", "Value2", at(1))])

        assert dict(snapshot.data) == {"Secret1": "Value1", "Secret2": "Value2"}
        assert snapshot.entries["Secret2"] == LoadedEntry("Secret2", "Value2", at(1))

    def test_fetched_value_wins_over_reused(self):
        assembler = SnapshotAssembler(section_prefix="")
        reused = {"Secret1": LoadedEntry("Secret1", "stale")}

        snapshot = assembler.assemble(reused, [SecretValue("Secret1", "fresh")])

        assert snapshot.data["Secret1"] == "fresh"

    def test_colliding_keys_last_writer_wins(self):
        assembler = SnapshotAssembler(section_prefix="")

        snapshot = assembler.assemble(
            {}, [SecretValue("a--b", "first"), SecretValue("A--B", "second")]
        )

        assert len(snapshot.entries) == 2
        assert len(snapshot.data) == 1
        assert snapshot.data["a:b"] == "second"

    def test_entries_are_read_only(self):
        snapshot = SnapshotAssembler().assemble({}, [SecretValue("Secret1", "Value1")])

        with pytest.raises(TypeError):
            snapshot.entries["Secret2"] = LoadedEntry("Secret2", "Value2")
