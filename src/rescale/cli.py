"""
rescale のコマンドラインインターフェース

    rescale --image in.png --resolution 1920x1080 --output out.png

環境変数 DEBUG=true は --debug の既定値としてのみ読み込む。
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from loguru import logger

from . import __version__
from .config import Config, build_config, env_debug_enabled
from .errors import ERROR_PREFIX, RescaleError, describe_error
from .pipeline import ResizeResult, process
from .resolutions import RESOLUTION_CLASSES, resolution_class

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {module}:{function}:{line} - {message}"
RUN_LOG_NAME = "run_{time:YYYYMMDD_HHmmss}.log"
SUMMARY_NAME = "last_run.json"
LOG_RETENTION = "30 days"


def default_log_dir(env: Optional[Mapping[str, str]] = None, home: Optional[Path] = None) -> Path:
    """--save-log の出力先。$RESCALE_LOG_DIR > $XDG_STATE_HOME > ~/.local/state"""
    resolved_env = os.environ if env is None else env
    if resolved_env.get("RESCALE_LOG_DIR"):
        return Path(resolved_env["RESCALE_LOG_DIR"])
    if resolved_env.get("XDG_STATE_HOME"):
        return Path(resolved_env["XDG_STATE_HOME"]) / "rescale" / "logs"
    return (home or Path.home()) / ".local" / "state" / "rescale" / "logs"


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> None:
    """ロガーの設定を行う"""
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        colorize=True,
        level="DEBUG" if debug else "INFO",
    )
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / RUN_LOG_NAME,
            format=FILE_FORMAT,
            level="DEBUG",  # ファイルログは常にDEBUG
            retention=LOG_RETENTION,
            encoding="utf-8",
        )


def _write_summary(summary_path: Path, payload: Dict[str, Any]) -> None:
    """summary JSON を一時ファイル経由で保存する"""
    tmp_path = summary_path.with_suffix(f"{summary_path.suffix}.tmp")
    with tmp_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2)
    tmp_path.replace(summary_path)


def _build_arg_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI use."""
    presets = "\n".join(f"  {label}: {', '.join(values)}" for label, values in RESOLUTION_CLASSES.items())
    p = argparse.ArgumentParser(
        prog="rescale",
        description="Resize an image to one of the supported resolutions.",
        epilog=f"supported resolutions:\n{presets}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    # 必須チェックは build_config で行う（エラー表示を統一するため）
    p.add_argument("--image", help="path to the input image")
    p.add_argument("--resolution", metavar="WxH", help="target resolution, e.g. 1920x1080")
    p.add_argument("--output", help="path to write the resized image")
    p.add_argument("--debug", action="store_true", help="enable verbose logging (default: $DEBUG == 'true')")
    p.add_argument("--batch", action="store_true", help="reserved; has no effect")
    p.add_argument("--json", action="store_true", help="print a JSON summary to stdout")
    p.add_argument("--save-log", action="store_true", help="write a run log and summary to the log directory")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _build_cli_summary(
    *,
    status: str,
    config: Optional[Config],
    result: Optional[ResizeResult] = None,
    message: str = "",
) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "status": status,
        "image": config.image_path if config else None,
        "output": config.output_path if config else None,
        "resolution": config.resolution if config else None,
        "resolution_class": resolution_class(config.resolution) if config else None,
        "message": message,
    }
    if result is not None:
        summary.update(
            {
                "output_format": result.output_format,
                "source_bytes": result.source_bytes,
                "output_bytes": result.output_bytes,
                "elapsed_seconds": round(result.elapsed_seconds, 3),
            }
        )
    return summary


def main(argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    """CLI エントリポイント。終了コードを返す"""
    args = _build_arg_parser().parse_args(argv)
    debug = args.debug or env_debug_enabled(env)

    log_dir = default_log_dir(env) if args.save_log else None
    setup_logging(debug=debug, log_dir=log_dir)

    config: Optional[Config] = None
    result: Optional[ResizeResult] = None
    errors: List[str] = []
    try:
        config = build_config(
            {
                "image": args.image,
                "resolution": args.resolution,
                "output": args.output,
                "debug": debug,
                "batch": args.batch,
            }
        )
        if config.debug:
            logger.debug(f"{ERROR_PREFIX} Parsed arguments: {json.dumps(config.to_dict())}")
        result = process(config)
    except RescaleError as e:
        errors.append(str(e))
        logger.error(str(e))
        if debug:
            logger.opt(exception=e).debug("Traceback")
    except Exception as e:
        message = f"{ERROR_PREFIX} Failed to process image: {describe_error(e)}"
        errors.append(message)
        logger.opt(exception=e).error(message)

    if result is not None:
        logger.info(f"Saved {result.output_path} ({result.resolution})")

    summary = _build_cli_summary(
        status="success" if result is not None else "failed",
        config=config,
        result=result,
        message=errors[0] if errors else "ok",
    )
    if log_dir is not None:
        _write_summary(log_dir / SUMMARY_NAME, summary)
        logger.debug(f"Run summary written to {log_dir / SUMMARY_NAME}")
    if args.json:
        print(json.dumps(summary, ensure_ascii=False))

    return 0 if result is not None else 1
