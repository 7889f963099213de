# tests/test_cli.py
import pytest
import typer
from PIL import Image
from typer.testing import CliRunner

from copycolors import contrast_reference, copycolors_cli
from ccolors.color_metric import BLACK, WHITE

app = typer.Typer()
app.command()(copycolors_cli)
runner = CliRunner()


@pytest.fixture(autouse=True)
def plain_console(monkeypatch):
    # rich treats these as "this is a terminal"
    for var in ("FORCE_COLOR", "TTY_COMPATIBLE", "TTY_INTERACTIVE"):
        monkeypatch.delenv(var, raising=False)


def create_dummy_image(path, colors=((255, 0, 0), (0, 0, 255))):
    img = Image.new("RGB", (10, 5 * len(colors)))
    for i, color in enumerate(colors):
        img.paste(color, (0, i * 5, 10, (i + 1) * 5))
    img.save(path)


def test_single_file_hex(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image)
    result = runner.invoke(app, [str(image), "--nb-colors", "2"])
    assert result.exit_code == 0, result.output
    assert set(result.output.strip().split(",")) == {"#FF0000", "#0000FF"}


def test_single_file_rgb_and_contrast(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image, colors=((255, 255, 0), (0, 0, 128)))
    result = runner.invoke(app, [str(image), "-n", "2", "--rgb", "--bcw"])
    assert result.exit_code == 0, result.output
    # navy contrasts more with white than yellow does
    assert result.output.strip() == "RGB(0,0,128),RGB(255,255,0)"


def test_single_file_excluded_color(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image)
    result = runner.invoke(app, [str(image), "-n", "2", "-e", "#ff0000"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "#0000FF"


def test_everything_excluded_fails(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image, colors=((255, 0, 0),))
    result = runner.invoke(app, [str(image), "-e", "#FF0000"])
    assert result.exit_code == 1
    assert "No pixels left" in result.output


def test_invalid_hex(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image)
    result = runner.invoke(app, [str(image), "-e", "#FFF"])
    assert result.exit_code == 1
    assert "not a valid hexadecimal code" in result.output


def test_too_many_excluded_colors(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image)
    args = [str(image)]
    for i in range(6):
        args += ["-e", f"#00000{i}"]
    result = runner.invoke(app, args)
    assert result.exit_code == 1
    assert "up to 5 colors" in result.output


def test_nb_colors_out_of_range(tmp_path):
    image = tmp_path / "dummy_input.png"
    create_dummy_image(image)
    assert runner.invoke(app, [str(image), "-n", "11"]).exit_code == 2
    assert runner.invoke(app, [str(image), "-n", "1"]).exit_code == 2


def test_missing_file(tmp_path):
    result = runner.invoke(app, [str(tmp_path / "nope.png")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_not_an_image_path(tmp_path):
    result = runner.invoke(app, [str(tmp_path / "notes.txt")])
    assert result.exit_code == 1
    assert "neither" in result.output


def test_directory_mode(tmp_path):
    create_dummy_image(tmp_path / "a.png")
    (tmp_path / "b.png").write_bytes(b"garbage")
    (tmp_path / "c.txt").write_text("skip me")
    result = runner.invoke(app, [str(tmp_path), "-n", "2", "--workers", "2"])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("a.png: ")
    assert set(lines[0][len("a.png: "):].split(",")) == {"#FF0000", "#0000FF"}
    assert lines[1].startswith("b.png: Error:")


def test_directory_mode_recursive_with_pattern(tmp_path):
    create_dummy_image(tmp_path / "keep_top.png")
    (tmp_path / "sub").mkdir()
    create_dummy_image(tmp_path / "sub" / "keep_nested.png")
    create_dummy_image(tmp_path / "sub" / "other.png")
    result = runner.invoke(app, [str(tmp_path), "-R", "-p", "^keep"])
    assert result.exit_code == 0, result.output
    names = [line.split(":")[0] for line in result.output.strip().splitlines()]
    assert names == ["keep_top.png", "sub/keep_nested.png"] or names == ["keep_top.png", "sub\\keep_nested.png"]


def test_directory_mode_empty(tmp_path):
    result = runner.invoke(app, [str(tmp_path)])
    assert result.exit_code == 0
    assert "No image files" in result.output


def test_directory_mode_bad_pattern(tmp_path):
    result = runner.invoke(app, [str(tmp_path), "-p", "("])
    assert result.exit_code == 1
    assert "Invalid file name pattern" in result.output


def test_contrast_reference_black_wins():
    assert contrast_reference(True, True) == BLACK
    assert contrast_reference(True, False) == WHITE
    assert contrast_reference(False, False) is None


def test_help_output():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "usage" in result.output.lower()


def test_oversized_image(tmp_path, monkeypatch):
    image = tmp_path / "huge.png"
    Image.new("RGB", (100, 100)).save(image)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    result = runner.invoke(app, [str(image)])
    assert result.exit_code == 1
    assert "Error while extracting colors" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
