"""
Tests for the Subtitle Assembler module.
"""

import pytest
from ocrsub.assembler import READ_ERROR_PLACEHOLDER, AssemblyError, SubtitleAssembler
from ocrsub.corrector import BatchCorrector, BatchTextCorrector


class DropLastCorrector(BatchTextCorrector):
    """Returns one fewer line than it was sent."""

    def correct_batch(self, texts):
        return [t.upper() for t in texts][:-1]


class UpperCorrector(BatchTextCorrector):
    def correct_batch(self, texts):
        return [t.upper() for t in texts]


class BlankCorrector(BatchTextCorrector):
    def correct_batch(self, texts):
        return ["" for _ in texts]


def no_sleep(_seconds):
    pass


@pytest.fixture
def texts_dir(tmp_path):
    folder = tmp_path / "TXTImages"
    folder.mkdir()
    return folder


def write_artifacts(folder, artifacts):
    for name, content in artifacts.items():
        (folder / name).write_text(content, encoding="utf-8")


HELLO_WORLD = {
    "00_00_01_000__00_00_03_500.txt": "Hello",
    "00_00_04_000__00_00_06_000.txt": "World",
}

EXPECTED_HELLO_WORLD = (
    "1\n"
    "00:00:01,000 --> 00:00:03,500\n"
    "Hello\n"
    "\n"
    "2\n"
    "00:00:04,000 --> 00:00:06,000\n"
    "World\n"
    "\n"
)


class TestEndToEnd:
    """Full assembly scenarios."""

    def test_two_files_no_corrector(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, HELLO_WORLD)
        output = tmp_path / "out.srt"

        result = SubtitleAssembler().assemble(texts_dir, output)

        assert output.read_text(encoding="utf-8") == EXPECTED_HELLO_WORLD
        assert [b.sequence for b in result.blocks] == [1, 2]
        assert result.warnings == []

    def test_malformed_name_skipped(self, texts_dir, tmp_path, caplog):
        write_artifacts(texts_dir, HELLO_WORLD)
        write_artifacts(texts_dir, {"broken-name.txt": "Ignored"})
        output = tmp_path / "out.srt"

        result = SubtitleAssembler().assemble(texts_dir, output)

        assert output.read_text(encoding="utf-8") == EXPECTED_HELLO_WORLD
        assert result.skipped_files == ["broken-name.txt"]
        assert "broken-name.txt" in caplog.text

    def test_malformed_name_consumes_no_sequence(self, texts_dir, tmp_path):
        # sorts between the two valid files
        write_artifacts(texts_dir, HELLO_WORLD)
        write_artifacts(texts_dir, {"00_00_02_000.txt": "Ignored"})

        result = SubtitleAssembler().assemble(texts_dir, tmp_path / "out.srt")

        assert [(b.sequence, b.text) for b in result.blocks] == [(1, "Hello"), (2, "World")]

    def test_short_correction_keeps_originals(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, {
            "0_00_01_000__0_00_02_000.txt": "uno",
            "0_00_03_000__0_00_04_000.txt": "dos",
            "0_00_05_000__0_00_06_000.txt": "tres",
        })
        output = tmp_path / "out.srt"
        corrector = BatchCorrector(DropLastCorrector(), sleep=no_sleep)

        result = SubtitleAssembler(corrector=corrector).assemble(texts_dir, output)

        assert [b.text for b in result.blocks] == ["uno", "dos", "tres"]
        content = output.read_text(encoding="utf-8")
        for word in ("uno", "dos", "tres"):
            assert f"\n{word}\n" in content
        assert len(result.warnings) == 1

    def test_correction_applied_positionally(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, HELLO_WORLD)
        corrector = BatchCorrector(UpperCorrector(), sleep=no_sleep)
        result = SubtitleAssembler(corrector=corrector).assemble(texts_dir, tmp_path / "out.srt")
        assert [b.text for b in result.blocks] == ["HELLO", "WORLD"]


class TestTextHandling:
    """Cleaning, placeholders and unreadable files."""

    def test_header_lines_removed(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, {
            "0_00_01_000__0_00_02_000.txt": "0_00_01_000__0_00_02_000\n________\nReal text\n",
        })
        result = SubtitleAssembler().assemble(texts_dir, tmp_path / "out.srt")
        assert result.blocks[0].text == "Real text"

    def test_empty_text_rendered_as_ellipsis(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, {"0_00_01_000__0_00_02_000.txt": "title\nsep\n\n"})
        output = tmp_path / "out.srt"
        SubtitleAssembler().assemble(texts_dir, output)
        assert output.read_text(encoding="utf-8") == "1\n00:00:01,000 --> 00:00:02,000\n...\n\n"

    def test_empty_after_correction_rendered_as_ellipsis(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, {"0_00_01_000__0_00_02_000.txt": "   "})
        output = tmp_path / "out.srt"
        corrector = BatchCorrector(BlankCorrector(), sleep=no_sleep)
        SubtitleAssembler(corrector=corrector).assemble(texts_dir, output)
        assert "\n...\n" in output.read_text(encoding="utf-8")

    def test_undecodable_artifact_uses_placeholder(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, HELLO_WORLD)
        (texts_dir / "00_00_02_000__00_00_03_000.txt").write_bytes(b"\xff\xfe\xfa bad")

        result = SubtitleAssembler().assemble(texts_dir, tmp_path / "out.srt")

        assert [b.text for b in result.blocks] == ["Hello", READ_ERROR_PLACEHOLDER, "World"]
        assert result.unreadable_files == ["00_00_02_000__00_00_03_000.txt"]

    def test_non_text_files_ignored(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, HELLO_WORLD)
        write_artifacts(texts_dir, {"0_00_09_000__0_00_10_000.txt.part": "partial"})
        (texts_dir / "0_00_08_000__0_00_09_000.txt").mkdir()
        result = SubtitleAssembler().assemble(texts_dir, tmp_path / "out.srt")
        assert len(result.blocks) == 2


class TestOrdering:
    """Filename order decides sequence numbers."""

    def test_lexicographic_order(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, {
            "0_00_10_000__0_00_11_000.txt": "third",
            "0_00_02_000__0_00_03_000.txt": "second",
            "0_00_01_000__0_00_02_000.txt": "first",
        })
        result = SubtitleAssembler().assemble(texts_dir, tmp_path / "out.srt")
        assert [(b.sequence, b.text) for b in result.blocks] == [
            (1, "first"), (2, "second"), (3, "third"),
        ]


class TestFatalErrors:
    """Failures that abort assembly."""

    def test_missing_folder(self, tmp_path):
        with pytest.raises(AssemblyError):
            SubtitleAssembler().assemble(tmp_path / "nope", tmp_path / "out.srt")

    def test_no_artifacts(self, texts_dir, tmp_path):
        with pytest.raises(AssemblyError):
            SubtitleAssembler().assemble(texts_dir, tmp_path / "out.srt")

    def test_output_not_writable(self, texts_dir, tmp_path):
        write_artifacts(texts_dir, HELLO_WORLD)
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(AssemblyError):
            SubtitleAssembler().assemble(texts_dir, blocker / "out.srt")
