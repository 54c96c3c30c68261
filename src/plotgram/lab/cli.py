from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from plotgram.core.errors import PlotgramError
from plotgram.core.schema import PlotSpec
from plotgram.io import PlotSettings, ReshapeDirective, load_dataset
from plotgram.viz import Plot, Renderer, save

from .gallery import GALLERY, build, recipe_names

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=str, default=None, help="TOML settings file (default: ./plotgram.toml).")
    p.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="WARNING", help="Logging level.")


def _setup(args: argparse.Namespace) -> PlotSettings:
    """Configure logging and load settings (env > TOML > defaults)."""
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")
    return PlotSettings.load(args.config)


def _cmd_list(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="plotgram list", description="List gallery recipes.")
    p.add_argument("--offline", action="store_true", help="Hide recipes that fetch remote data.")
    args = p.parse_args(argv)

    for name in recipe_names(offline=args.offline):
        recipe = GALLERY[name]
        flag = " [remote]" if recipe.remote else ""
        print(f"{name:<20} {recipe.description}{flag}")
    return 0


def _cmd_gallery(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="plotgram gallery", description="Render gallery recipes to files.")
    p.add_argument("--only", action="append", default=[], metavar="NAME", help="Recipe to render (repeatable).")
    p.add_argument("--out", type=str, default="out/gallery", help="Output directory.")
    p.add_argument("--format", dest="fmt", type=str, default="svg", help="Output format: pdf, png, svg, html, json.")
    p.add_argument("--offline", action="store_true", help="Skip recipes that fetch remote data.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    names = args.only or recipe_names(offline=args.offline)
    unknown = [n for n in names if n not in GALLERY]
    if unknown:
        print(f"Unknown recipe(s): {', '.join(unknown)}", file=sys.stderr)
        return 2

    out_dir = Path(args.out)
    renderer = Renderer(settings)
    ext = args.fmt.lower().lstrip(".")
    failed = 0
    for name in names:
        try:
            artifact = renderer.render(build(name, settings))
            path = save(artifact, out_dir / f"{name}.{ext}", settings=settings)
        except (PlotgramError, RuntimeError) as exc:
            print(f"[WARN] {name}: {exc}", file=sys.stderr)
            failed += 1
            continue
        print(f"[INFO] Wrote {path}")
    return 1 if failed else 0


def _cmd_spec(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="plotgram spec", description="Print a gallery recipe's plot specification as JSON.")
    p.add_argument("name", help="Recipe name.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    if args.name not in GALLERY:
        print(f"Unknown recipe: {args.name}", file=sys.stderr)
        return 2
    print(build(args.name, settings).spec.model_dump_json(indent=2))
    return 0


def _parse_layer_data(items: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in items:
        key, sep, source = item.partition("=")
        if not sep or not key or not source:
            raise SystemExit(f"--layer-data expects KEY=SOURCE (got {item!r})")
        out[key] = source
    return out


def _cmd_render(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="plotgram render",
        description="Render a stored plot specification (JSON) against a dataset.",
    )
    p.add_argument("spec", help="Path to a PlotSpec JSON file.")
    p.add_argument("--data", type=str, required=True, help="Bundled name, URL, or file for the plot's default data.")
    p.add_argument(
        "--layer-data",
        action="append",
        default=[],
        metavar="KEY=SOURCE",
        help="Source for a layer-local dataset key (repeatable).",
    )
    p.add_argument("--melt", action="append", default=[], metavar="ID_COL", help="Melt the default data, keeping ID_COL.")
    p.add_argument("--factor", action="append", default=[], metavar="COL", help="Treat COL as categorical (repeatable).")
    p.add_argument("--out", type=str, required=True, help="Output path; the extension picks the format.")
    _add_common(p)
    args = p.parse_args(argv)
    settings = _setup(args)

    try:
        spec = PlotSpec.model_validate_json(Path(args.spec).read_text())
    except OSError as exc:
        print(f"Cannot read {args.spec}: {exc}", file=sys.stderr)
        return 2
    except ValidationError as exc:
        print(f"Invalid plot specification in {args.spec}:\n{exc}", file=sys.stderr)
        return 2

    reshape = ReshapeDirective(id_columns=tuple(args.melt)) if args.melt else None
    try:
        datasets = {
            spec.data: load_dataset(
                args.data, reshape=reshape, categorical=tuple(args.factor), name=spec.data, settings=settings
            )
        }
        for key, source in _parse_layer_data(args.layer_data).items():
            datasets[key] = load_dataset(source, name=key, settings=settings)
        plot = Plot.from_spec(spec, datasets)
        path = save(Renderer(settings).render(plot), args.out, settings=settings)
    except (PlotgramError, RuntimeError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    logger.info("rendered %s -> %s", args.spec, path)
    print(f"[INFO] Wrote {path}")
    return 0


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="plotgram", description="Grammar-of-graphics charts: gallery and spec rendering.")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="List gallery recipes.")
    sub.add_parser("gallery", help="Render gallery recipes.")
    sub.add_parser("spec", help="Print a recipe's PlotSpec JSON.")
    sub.add_parser("render", help="Render a PlotSpec JSON file.")
    return p


_COMMANDS = {
    "list": _cmd_list,
    "gallery": _cmd_gallery,
    "spec": _cmd_spec,
    "render": _cmd_render,
}


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        code = 2
    else:
        code = handler(rest)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
