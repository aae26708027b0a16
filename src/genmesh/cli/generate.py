"""CLI command for generating a 3D asset end to end.

Usage:
    python -m genmesh.cli.generate --model MODEL [OPTIONS]

Examples:
    # Text to PLY
    python -m genmesh.cli.generate --model ply --prompt "a red cube" --guidance-scale 12

    # Image to GLB from a local file (relayed through object storage)
    python -m genmesh.cli.generate --model dynamic_glb --prompt "a chair" --image chair.png

    # Image to GLB from a URL, giving up after ten minutes
    python -m genmesh.cli.generate --model dynamic_glb --image-url https://... --max-wait 600
"""

import asyncio
import mimetypes
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path

import structlog

from genmesh.core.config import Settings, configure_logging
from genmesh.models.generation_request import ImageUpload, ModelType
from genmesh.models.job import Job, JobStatus
from genmesh.services.assets.presenter import resolve_asset
from genmesh.services.exceptions import GenerationError
from genmesh.services.generation.normalizer import FormValue, normalize_request
from genmesh.services.generation.poller import poll_until_terminal
from genmesh.services.generation.replicate_client import ReplicateGateway
from genmesh.services.generation.submitter import submit_generation
from genmesh.services.storage.upload_relay import UploadRelay

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(
        description="Generate a 3D asset with a hosted model and save it locally",
        epilog="Credentials and model versions are read from the environment / .env",
    )

    parser.add_argument(
        "--model",
        required=True,
        choices=[m.value for m in ModelType],
        help="Model variant to run",
    )
    parser.add_argument("--prompt", help="Text prompt")
    parser.add_argument("--negative-prompt", help="Negative prompt (ply only)")
    parser.add_argument("--guidance-scale", help="Guidance scale")
    parser.add_argument("--num-steps", help="Number of steps (dynamic_glb only)")
    parser.add_argument("--max-steps", help="Max steps (ply only)")
    parser.add_argument("--seed", help="Random seed")
    parser.add_argument(
        "--fast", action="store_true", help="Use fast configs (dynamic_glb only)"
    )
    parser.add_argument("--avatar", action="store_true", help="Avatar mode (ply only)")

    image = parser.add_mutually_exclusive_group()
    image.add_argument("--image", type=Path, help="Local input image (dynamic_glb only)")
    image.add_argument("--image-url", help="Input image URL (dynamic_glb only)")

    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Where to write the asset (default: asset filename in current directory)",
    )
    parser.add_argument(
        "--max-wait",
        type=float,
        help="Give up polling after this many seconds (default: POLL_MAX_WAIT_SECONDS or never)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


def build_form_fields(args: Namespace) -> dict[str, FormValue]:
    """Translate CLI arguments into the same fields the web form submits."""
    fields: dict[str, FormValue] = {"model_type": args.model}

    optional = {
        "prompt": args.prompt,
        "negative_prompt": args.negative_prompt,
        "guidance_scale": args.guidance_scale,
        "num_steps": args.num_steps,
        "max_steps": args.max_steps,
        "seed": args.seed,
    }
    fields.update({name: value for name, value in optional.items() if value is not None})

    if args.fast:
        fields["use_fast_configs"] = "on"
    if args.avatar:
        fields["avatar"] = "on"

    if args.image is not None:
        content_type = mimetypes.guess_type(args.image.name)[0] or "application/octet-stream"
        fields["image_type"] = "upload"
        fields["image"] = ImageUpload(
            filename=args.image.name,
            content_type=content_type,
            data=args.image.read_bytes(),
        )
    elif args.image_url:
        fields["image_type"] = "url"
        fields["image_url"] = args.image_url

    return fields


def _log_update(job: Job) -> None:
    logger.info("prediction.status", prediction_id=job.id, status=job.status.value)


async def run(args: Namespace, settings: Settings) -> int:
    """Submit, poll and save one generation. Returns the process exit code."""
    request = normalize_request(build_form_fields(args))
    gateway = ReplicateGateway(settings.replicate_api_token)
    relay = UploadRelay(settings)

    job = await submit_generation(request, gateway, relay, settings)
    logger.info("prediction.created", prediction_id=job.id, status=job.status.value)

    max_wait = args.max_wait if args.max_wait is not None else settings.poll_max_wait_seconds
    job = await poll_until_terminal(
        gateway,
        job.id,
        interval=settings.poll_interval_seconds,
        on_update=_log_update,
        max_wait=max_wait,
    )

    if job.status == JobStatus.FAILED:
        logger.error("prediction.failed", prediction_id=job.id, error=job.error)
        return 1

    asset = await resolve_asset(
        job, download=True, timeout=settings.asset_fetch_timeout_seconds
    )
    output_path = args.output or Path(asset.filename)
    output_path.write_bytes(asset.data or b"")

    logger.info(
        "asset.saved",
        prediction_id=job.id,
        path=str(output_path),
        format=asset.format.value,
        size_bytes=len(asset.data or b""),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    try:
        return asyncio.run(run(args, settings))
    except GenerationError as e:
        logger.error("generate.failed", error=e.message, error_type=type(e).__name__)
        return 1
    except OSError as e:
        logger.error("generate.failed", error=str(e), error_type=type(e).__name__)
        return 1
    except KeyboardInterrupt:
        logger.warning("generate.interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
