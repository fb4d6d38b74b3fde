import io
import json

import pypdf
import pytest
from PIL import Image
from reportlab.pdfgen.canvas import Canvas
from typer.testing import CliRunner

from infostamp.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("INFOSTAMP_CONFIG", str(tmp_path / "config" / "config.yaml"))


def _write_png(path, size=(300, 80)) -> None:
    Image.new("RGB", size, color="#FFFFFF").save(path, format="PNG")


def test_image_command_writes_stamped_copy(tmp_path) -> None:
    source = tmp_path / "signature.png"
    _write_png(source)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["image", str(source), "--field", "Name=Dat Tran Ba", "--field", "Company: dattb.com", "--out", str(out_dir)],
    )

    assert result.exit_code == 0, result.output
    assert "success=1" in result.output
    stamped = out_dir / "signature__stamped.png"
    with Image.open(stamped) as image:
        assert image.width == 300
        assert image.height > 80


def test_image_command_skips_existing_output(tmp_path) -> None:
    source = tmp_path / "signature.png"
    _write_png(source)
    out_dir = tmp_path / "out"
    args = ["image", str(source), "--field", "Name=Dat", "--out", str(out_dir)]

    assert runner.invoke(app, args).exit_code == 0
    second = runner.invoke(app, args)
    assert second.exit_code == 0
    assert "skipped=1" in second.output


def test_image_command_rejects_bad_field(tmp_path) -> None:
    source = tmp_path / "signature.png"
    _write_png(source)

    result = runner.invoke(app, ["image", str(source), "--field", "no separator"])
    assert result.exit_code == 1


def test_pdf_command_stamps_region(tmp_path) -> None:
    source = tmp_path / "contract.pdf"
    canvas = Canvas(str(source), pagesize=(400, 400))
    canvas.showPage()
    canvas.save()
    signature = tmp_path / "sig.png"
    _write_png(signature, size=(120, 40))
    target = tmp_path / "signed.pdf"

    result = runner.invoke(
        app,
        [
            "pdf",
            str(source),
            "--rect",
            "50,50,250,150",
            "--field",
            "Name=Dat Tran Ba",
            "--line",
            "Signed digitally",
            "--image",
            str(signature),
            "--out",
            str(target),
        ],
    )

    assert result.exit_code == 0, result.output
    reader = pypdf.PdfReader(io.BytesIO(target.read_bytes()))
    text = reader.pages[0].extract_text()
    assert "Dat Tran Ba" in text
    assert "Signed digitally" in text


def test_pdf_command_rejects_bad_rect(tmp_path) -> None:
    source = tmp_path / "contract.pdf"
    canvas = Canvas(str(source))
    canvas.showPage()
    canvas.save()

    result = runner.invoke(app, ["pdf", str(source), "--rect", "1,2,3", "--line", "x"])
    assert result.exit_code == 1


def test_plan_command_prints_layout(tmp_path) -> None:
    source = tmp_path / "signature.png"
    _write_png(source)

    result = runner.invoke(app, ["plan", str(source), "--field", "Name=Dat Tran Ba"])

    assert result.exit_code == 0, result.output
    # log records may precede the JSON document on the captured stream
    payload, _ = json.JSONDecoder().raw_decode(result.output[result.output.index("{") :])
    assert payload["image_size"] == [300, 80]
    assert payload["plan"]["coords"] == "top_down"
    assert payload["plan"]["lines"][0]["text"] == "Name: Dat Tran Ba"
    assert payload["output_size"][1] > 80
    assert payload["fits"] is True


def test_presets_command_lists_builtins() -> None:
    result = runner.invoke(app, ["presets"])
    assert result.exit_code == 0
    assert "signature" in result.output
    assert "caption" in result.output


def test_init_config_writes_file(tmp_path) -> None:
    result = runner.invoke(app, ["init-config"])
    assert result.exit_code == 0
    assert (tmp_path / "config" / "config.yaml").exists()
