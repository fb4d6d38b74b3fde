from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
import yaml

from infostamp.config import load_config, write_default_config
from infostamp.constants import VALID_OUTPUT_FORMATS
from infostamp.decoders.image_decoder import decode_image, encode_image
from infostamp.discover import discover_inputs
from infostamp.errors import InfostampError
from infostamp.models import CoordinateSystem, LayoutBox, TextBlock
from infostamp.naming import build_output_name
from infostamp.render.page import PageCompositor
from infostamp.render.pdf_stamp import stamp_pdf
from infostamp.render.raster import compose_image, plan_image_annotation
from infostamp.template_loader import list_builtin_presets, load_preset

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Stamp key/value text onto images and PDF pages.")
LOGGER = logging.getLogger("infostamp")


@dataclass(slots=True)
class _Result:
    source: Path
    status: str          # ok | skipped | failed
    output: Path | None = None
    elapsed: float = 0.0
    error: str | None = None
    warnings: int = 0


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _resolve_output_format(fmt: str) -> tuple[str, str]:
    f = fmt.lower()
    if f not in VALID_OUTPUT_FORMATS:
        raise ValueError(f"output format must be jpeg/jpg or png, got: {fmt!r}")
    if f == "png":
        return "png", "PNG"
    return "jpg", "JPEG"


def _load_fields_file(path: Path) -> list[tuple[str, str]]:
    data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return [(str(k), "" if v is None else str(v)) for k, v in data.items()]
    if isinstance(data, list):
        return list(TextBlock.parse(str(item) for item in data).pairs)
    raise ValueError(f"fields file must hold a mapping or a list: {path}")


def _build_text_block(fields: list[str], fields_file: Path | None) -> TextBlock:
    pairs: list[tuple[str, str]] = []
    if fields_file is not None:
        pairs.extend(_load_fields_file(fields_file))
    pairs.extend(TextBlock.parse(fields).pairs)
    return TextBlock(tuple(pairs))


def _parse_rect(value: str) -> LayoutBox:
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 4:
        raise ValueError(f"rectangle must be 'x,y,width,height', got: {value!r}")
    x, y, width, height = (float(p) for p in parts)
    if width <= 0 or height <= 0:
        raise ValueError(f"rectangle width and height must be positive, got: {value!r}")
    return LayoutBox(x, y, width, height, CoordinateSystem.BOTTOM_UP)


def _fail(message: str) -> typer.Exit:
    typer.secho(message, err=True, fg=typer.colors.RED)
    return typer.Exit(1)


@app.command()
def image(
    input_path: Path = typer.Argument(..., exists=True, resolve_path=True),
    field: list[str] = typer.Option([], "--field", "-f", help='Text field, e.g. "Name=Dat Tran Ba". Repeatable.'),
    fields_file: Path | None = typer.Option(None, "--fields-file", exists=True, dir_okay=False, help="YAML mapping of label: value."),
    out: Path | None = typer.Option(None, "--out", help="Output directory."),
    recursive: bool = typer.Option(False, "--recursive", help="Recursively scan input directories."),
    output_format: str | None = typer.Option(None, "--format", help="Output format: png|jpeg"),
    name_template: str | None = typer.Option(None, "--name", help='Output filename template, e.g. "{stem}__stamped.{ext}"'),
    font: str | None = typer.Option(None, "--font", help="Font family name or font file path."),
    padding: int | None = typer.Option(None, "--padding", min=0),
    skip_existing: bool | None = typer.Option(None, "--skip-existing/--no-skip-existing"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Append the text fields below each image, growing the canvas to fit."""
    _setup_logging(log_level)
    cfg = load_config()
    image_cfg = cfg["image"]

    try:
        out_ext, pil_format = _resolve_output_format(output_format or str(image_cfg["output_format"]))
        block = _build_text_block(field, fields_file)
    except ValueError as exc:
        raise _fail(str(exc))

    name_tmpl = name_template or str(image_cfg["name_template"])
    skip = cfg["skip_existing"] if skip_existing is None else skip_existing
    options = {
        "font_family": font or str(image_cfg["font_family"]),
        "padding": int(image_cfg["padding"] if padding is None else padding),
        "background": str(image_cfg["background"]),
        "text_color": str(image_cfg["text_color"]),
    }

    out_dir = out
    if out_dir is None:
        out_dir = (input_path / "output") if input_path.is_dir() else (input_path.parent / "output")
    files = discover_inputs(input_path, recursive=recursive, exclude=out_dir)
    if not files:
        typer.echo("No supported image files found.")
        raise typer.Exit(0)
    out_dir.mkdir(parents=True, exist_ok=True)

    def process_one(source: Path) -> _Result:
        t0 = time.perf_counter()
        try:
            output_name = build_output_name(name_tmpl, source, out_ext, fields=block.pairs)
            output_file = out_dir / output_name
            if skip and output_file.exists():
                return _Result(source=source, status="skipped", output=output_file, elapsed=time.perf_counter() - t0)
            result = compose_image(decode_image(source), block, **options)
            data = encode_image(result.image, pil_format, quality=int(image_cfg["quality"]))
            output_file.write_bytes(data)
            return _Result(
                source=source,
                status="ok",
                output=output_file,
                elapsed=time.perf_counter() - t0,
                warnings=len(result.conditions),
            )
        except (InfostampError, OSError, ValueError) as exc:
            return _Result(source=source, status="failed", error=str(exc), elapsed=time.perf_counter() - t0)

    results: list[_Result] = []
    for f in files:
        r = process_one(f)
        results.append(r)
        if r.status == "ok":
            LOGGER.info("OK   %s -> %s  (%.2fs)", r.source.name, r.output.name if r.output else "-", r.elapsed)
        elif r.status == "skipped":
            LOGGER.info("SKIP %s (exists)", r.source.name)
        else:
            LOGGER.error("FAIL %s  %s", r.source.name, r.error)

    ok = sum(1 for r in results if r.status == "ok")
    skipped = sum(1 for r in results if r.status == "skipped")
    warned = sum(1 for r in results if r.warnings)
    failed = [r for r in results if r.status == "failed"]
    typer.echo(f"Done. success={ok} skipped={skipped} failed={len(failed)} overflow={warned}")
    if failed:
        typer.secho("Failures:", fg=typer.colors.RED)
        for r in failed:
            typer.secho(f"  {r.source}: {r.error}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command()
def pdf(
    input_pdf: Path = typer.Argument(..., exists=True, resolve_path=True, dir_okay=False),
    rect: str = typer.Option(..., "--rect", help="Region in points as x,y,width,height (origin bottom-left)."),
    field: list[str] = typer.Option([], "--field", "-f", help='Text field, e.g. "Name=Dat Tran Ba". Repeatable.'),
    line: list[str] = typer.Option([], "--line", help="Literal text line. Repeatable."),
    fields_file: Path | None = typer.Option(None, "--fields-file", exists=True, dir_okay=False),
    image_path: Path | None = typer.Option(None, "--image", exists=True, dir_okay=False, help="Image drawn above the text."),
    page: int = typer.Option(1, "--page", min=1, help="1-based page number."),
    preset: str | None = typer.Option(None, "--preset", help="Preset name or YAML/JSON file path."),
    debug_borders: bool | None = typer.Option(None, "--debug-borders/--no-debug-borders"),
    out: Path | None = typer.Option(None, "--out", help="Output PDF path."),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Draw the text (and an optional image) into a fixed region of a PDF page."""
    _setup_logging(log_level)
    cfg = load_config()
    pdf_cfg = cfg["pdf"]

    try:
        region = _parse_rect(rect)
        block = _build_text_block(field, fields_file)
        layout = load_preset(preset or str(pdf_cfg["preset"]))
    except (ValueError, FileNotFoundError) as exc:
        raise _fail(str(exc))
    lines = block.lines() + list(line)
    if not lines:
        raise _fail("nothing to draw: pass --field, --line or --fields-file")

    options = layout.region_options()
    options["compositor"] = PageCompositor(text_color=layout.text_color)
    output_file = out or input_pdf.parent / build_output_name(
        str(pdf_cfg["name_template"]), input_pdf, "pdf", fields=block.pairs, preset=layout.name
    )
    show_borders = bool(pdf_cfg["debug_borders"]) if debug_borders is None else debug_borders
    try:
        image_bytes = image_path.read_bytes() if image_path else None
        result = stamp_pdf(
            input_pdf.read_bytes(),
            region,
            lines,
            image_bytes,
            page_index=page - 1,
            debug_borders=show_borders,
            **options,
        )
    except (InfostampError, OSError) as exc:
        raise _fail(f"PDF stamping failed: {exc}")

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_bytes(result.data)
    LOGGER.info("Preset: %s, font size %g", layout.name, result.plan.font.size)
    for condition in result.plan.conditions:
        typer.secho(f"warning: {condition.describe()}", err=True, fg=typer.colors.YELLOW)
    suffix = " (text does not fit cleanly, see warnings)" if result.plan.has_conditions else ""
    typer.echo(f"PDF written: {output_file}{suffix}")


@app.command()
def plan(
    input_path: Path = typer.Argument(..., exists=True, resolve_path=True, dir_okay=False),
    field: list[str] = typer.Option([], "--field", "-f"),
    fields_file: Path | None = typer.Option(None, "--fields-file", exists=True, dir_okay=False),
    font: str | None = typer.Option(None, "--font"),
    padding: int | None = typer.Option(None, "--padding", min=0),
) -> None:
    """Print the layout computed for an image annotation, without drawing it."""
    cfg = load_config()["image"]
    try:
        block = _build_text_block(field, fields_file)
        source = decode_image(input_path)
    except (InfostampError, ValueError) as exc:
        raise _fail(str(exc))
    layout = plan_image_annotation(
        source.size,
        block,
        font_family=font or str(cfg["font_family"]),
        padding=int(cfg["padding"] if padding is None else padding),
    )
    payload: dict[str, Any] = {"file": str(input_path), "image_size": list(source.size)}
    payload["plan"] = None
    payload["output_size"] = list(source.size)
    if layout is not None:
        payload["plan"] = layout.to_dict()
        payload["fits"] = not layout.has_conditions
        payload["output_size"] = [source.width, source.height + int(round(layout.text_box.height))]
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command("presets")
def presets() -> None:
    """List built-in region layout presets."""
    for name in list_builtin_presets():
        preset = load_preset(name)
        typer.echo(f"{name}\timage={preset.image_ratio:g}\tsizing={preset.sizing['strategy']}")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
