"""Tests for the high-level build_pdf API and the CLI."""

from __future__ import annotations

import sys
from pathlib import Path

import pikepdf
import pytest

from conftest import create_jpeg, create_minimal_png
from image_pdf import AssemblyConfig, build_pdf
from image_pdf.cli import _build_parser, _format_size, main
from image_pdf.errors import DecodeError, EmptyInputError


class TestBuildPdf:
    @pytest.mark.asyncio
    async def test_writes_pdf_from_directory(self, tmp_path: Path):
        src = tmp_path / "images"
        src.mkdir()
        (src / "01.png").write_bytes(create_minimal_png(width=100, height=200))
        (src / "02.jpg").write_bytes(create_jpeg(width=300, height=100))
        out = tmp_path / "out" / "album.pdf"

        result = await build_pdf([src], out)

        assert result.output_path == out.resolve()
        assert result.page_count == 2
        assert result.total_bytes == out.stat().st_size
        with pikepdf.open(out) as pdf:
            assert len(pdf.pages) == 2

    @pytest.mark.asyncio
    async def test_output_directory_gets_default_name(self, tmp_path: Path):
        img = tmp_path / "one.png"
        img.write_bytes(create_minimal_png())

        result = await build_pdf([img], tmp_path / "dist", config=AssemblyConfig(margin=0))

        assert result.output_path.name == "converted-images.pdf"
        assert result.output_path.exists()

    @pytest.mark.asyncio
    async def test_no_images_raises(self, tmp_path: Path):
        (tmp_path / "readme.txt").write_text("no images here")

        with pytest.raises(EmptyInputError):
            await build_pdf([tmp_path], tmp_path / "out.pdf")

        assert not (tmp_path / "out.pdf").exists()

    @pytest.mark.asyncio
    async def test_corrupt_image_leaves_no_output(self, tmp_path: Path):
        good = tmp_path / "good.png"
        bad = tmp_path / "bad.png"
        good.write_bytes(create_minimal_png())
        bad.write_bytes(create_minimal_png()[:20])
        out = tmp_path / "out.pdf"

        with pytest.raises(DecodeError, match="bad.png"):
            await build_pdf([good, bad], out)

        assert not out.exists()


class TestCli:
    def test_defaults(self):
        args = _build_parser().parse_args(["a.png"])
        assert args.sources == ["a.png"]
        assert args.page_size == "a4"
        assert args.orientation == "portrait"
        assert args.margin == 40
        assert args.output is None

    def test_options(self):
        args = _build_parser().parse_args(
            ["a.png", "b.jpg", "--landscape", "--page-size", "letter",
             "--margin", "12.5", "--output", "x.pdf", "--title", "T"]
        )
        assert args.sources == ["a.png", "b.jpg"]
        assert args.orientation == "landscape"
        assert args.page_size == "letter"
        assert args.margin == 12.5
        assert args.output == Path("x.pdf")
        assert args.title == "T"

    def test_rejects_unknown_page_size(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["a.png", "--page-size", "b7"])

    @pytest.mark.parametrize(
        ("num_bytes", "expected"),
        [(512, "512.0 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB")],
    )
    def test_format_size(self, num_bytes, expected):
        assert _format_size(num_bytes) == expected


class TestCliMain:
    def _run(self, monkeypatch, *argv: str) -> None:
        monkeypatch.setattr(sys, "argv", ["image-pdf", *argv])
        main()

    def test_writes_pdf(self, tmp_path: Path, monkeypatch):
        img = tmp_path / "one.png"
        img.write_bytes(create_minimal_png(width=30, height=60))
        out = tmp_path / "out.pdf"

        self._run(monkeypatch, str(img), "--output", str(out), "--title", "Scan")

        with pikepdf.open(out) as pdf:
            assert len(pdf.pages) == 1
            assert str(pdf.docinfo["/Title"]) == "Scan"

    def test_bad_margin_exits_with_error(self, tmp_path: Path, monkeypatch, capsys):
        img = tmp_path / "one.png"
        img.write_bytes(create_minimal_png())
        out = tmp_path / "out.pdf"

        with pytest.raises(SystemExit) as exc_info:
            self._run(monkeypatch, str(img), "--output", str(out), "--margin", "1000")

        assert exc_info.value.code == 1
        assert "margin" in capsys.readouterr().err.lower()
        assert not out.exists()

    def test_corrupt_image_exits_with_error(self, tmp_path: Path, monkeypatch):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not really a png")
        out = tmp_path / "out.pdf"

        with pytest.raises(SystemExit) as exc_info:
            self._run(monkeypatch, str(bad), "--output", str(out))

        assert exc_info.value.code == 1
        assert not out.exists()

    def test_missing_file_exits_with_error(self, tmp_path: Path, monkeypatch):
        with pytest.raises(SystemExit) as exc_info:
            self._run(monkeypatch, str(tmp_path / "nope.png"))

        assert exc_info.value.code == 1
