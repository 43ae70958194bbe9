"""
Artifact Writer Tests.
"""

import json

import pytest

from treasury_snapshot.assembler import SnapshotAssembler
from treasury_snapshot.config import default_chains
from treasury_snapshot.models import NativeBalance, SnapshotRun
from treasury_snapshot.writer import ArtifactWriter, dump_json

from tests.fakes import TRACKED


GENERATED_AT = "2024-05-01T00:00:00.000Z"


@pytest.fixture
def chains():
    return default_chains("https://eth.example", "https://base.example")


def make_run(chains, generated_at=GENERATED_AT):
    assembler = SnapshotAssembler(TRACKED)
    snapshots = {}
    for chain in chains:
        native = NativeBalance(
            symbol="ETH",
            decimals=18,
            balance_wei="0",
            balance_formatted="0",
            explorer_address_url=chain.address_url(TRACKED),
        )
        snapshots[chain.name] = assembler.assemble(chain, generated_at, native, {}, {})

    return SnapshotRun(
        generated_at=generated_at,
        snapshots=snapshots,
        index=assembler.build_index(generated_at, snapshots.values()),
    )


@pytest.fixture
def run(chains):
    return make_run(chains)


class TestDumpJson:
    """Tests for dump_json."""

    def test_two_space_indent_and_newline(self):
        assert dump_json({"a": [1]}) == '{\n  "a": [\n    1\n  ]\n}\n'

    def test_key_order_preserved(self):
        text = dump_json({"z": 1, "a": 2})
        assert text.index('"z"') < text.index('"a"')


class TestArtifactWriter:
    """Tests for ArtifactWriter."""

    def test_layout(self, tmp_path, run, chains):
        writer = ArtifactWriter(tmp_path)

        written = writer.write(run, chains)

        assert written == [
            tmp_path / "eth" / "treasury.json",
            tmp_path / "base" / "treasury.json",
            tmp_path / "meta.json",
        ]
        for path in written:
            assert path.is_file()

    def test_contents(self, tmp_path, run, chains):
        ArtifactWriter(tmp_path).write(run, chains)

        eth = json.loads((tmp_path / "eth" / "treasury.json").read_text(encoding="utf-8"))
        meta = json.loads((tmp_path / "meta.json").read_text(encoding="utf-8"))

        assert eth == run.snapshots["ethereum"].to_dict()
        assert meta == {
            "generatedAt": GENERATED_AT,
            "address": TRACKED,
            "assets": {"ethereum": ["ETH"], "base": ["ETH"]},
        }

    def test_no_temp_files_left(self, tmp_path, run, chains):
        ArtifactWriter(tmp_path).write(run, chains)

        leftovers = [p.name for p in tmp_path.rglob("*.tmp")]
        assert leftovers == []

    def test_overwrites_previous_run(self, tmp_path, run, chains):
        meta = tmp_path / "meta.json"
        meta.write_text("stale", encoding="utf-8")

        ArtifactWriter(tmp_path).write(run, chains)

        assert json.loads(meta.read_text(encoding="utf-8"))["generatedAt"] == GENERATED_AT

    def test_render_matches_write(self, tmp_path, run, chains):
        writer = ArtifactWriter(tmp_path / "out")

        rendered = writer.render(run, chains)
        writer.write(run, chains)

        for path, text in rendered.items():
            assert path.read_text(encoding="utf-8") == text

    def test_render_touches_nothing(self, tmp_path, run, chains):
        ArtifactWriter(tmp_path / "out").render(run, chains)
        assert not (tmp_path / "out").exists()

    def test_missing_chain_fails_before_writing(self, tmp_path, run, chains):
        """Test that an incomplete run raises before any file is created."""
        del run.snapshots["base"]

        with pytest.raises(KeyError):
            ArtifactWriter(tmp_path / "out").write(run, chains)

        assert not (tmp_path / "out").exists()

    def test_failed_write_keeps_previous_set(self, tmp_path, run, chains):
        """Test that a destination failing mid-run leaves every prior file in place."""
        writer = ArtifactWriter(tmp_path)
        writer.write(run, chains)
        previous = {
            path: path.read_text(encoding="utf-8")
            for path in writer.render(run, chains)
        }

        base_dir = tmp_path / "base"
        (base_dir / "treasury.json").unlink()
        base_dir.rmdir()
        base_dir.write_text("not a directory", encoding="utf-8")

        later = make_run(chains, generated_at="2025-01-01T00:00:00.000Z")
        with pytest.raises(OSError):
            writer.write(later, chains)

        eth_path = tmp_path / "eth" / "treasury.json"
        meta_path = tmp_path / "meta.json"
        assert eth_path.read_text(encoding="utf-8") == previous[eth_path]
        assert meta_path.read_text(encoding="utf-8") == previous[meta_path]
        assert json.loads(eth_path.read_text(encoding="utf-8"))["generatedAt"] == GENERATED_AT

    def test_failed_write_removes_staged_files(self, tmp_path, run, chains):
        (tmp_path / "base").write_text("not a directory", encoding="utf-8")

        with pytest.raises(OSError):
            ArtifactWriter(tmp_path).write(run, chains)

        assert list(tmp_path.rglob("*.tmp")) == []
        assert not (tmp_path / "eth" / "treasury.json").exists()
