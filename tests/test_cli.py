"""Tests for the generate CLI command."""

import pytest

from conftest import make_job
from genmesh.cli import generate
from genmesh.models.asset import AssetFormat, ResolvedAsset
from genmesh.models.generation_request import ImageUpload


def test_form_fields_for_ply():
    args = generate.parse_args(
        ["--model", "ply", "--prompt", "a red cube", "--guidance-scale", "12", "--avatar"]
    )

    assert generate.build_form_fields(args) == {
        "model_type": "ply",
        "prompt": "a red cube",
        "guidance_scale": "12",
        "avatar": "on",
    }


def test_form_fields_for_local_image(tmp_path):
    image_path = tmp_path / "chair.png"
    image_path.write_bytes(b"\x89PNG")
    args = generate.parse_args(["--model", "dynamic_glb", "--image", str(image_path), "--fast"])

    fields = generate.build_form_fields(args)

    assert fields["image_type"] == "upload"
    assert fields["use_fast_configs"] == "on"
    assert fields["image"] == ImageUpload(
        filename="chair.png", content_type="image/png", data=b"\x89PNG"
    )


def test_image_and_url_are_exclusive():
    with pytest.raises(SystemExit):
        generate.parse_args(
            ["--model", "dynamic_glb", "--image", "a.png", "--image-url", "https://x/a.png"]
        )


@pytest.fixture
def patched_pipeline(monkeypatch, fake_gateway):
    """Route the CLI through the fake gateway and a canned asset."""
    monkeypatch.setattr(generate, "ReplicateGateway", lambda token: fake_gateway)

    async def fake_resolve(job, **kwargs):
        return ResolvedAsset(
            format=AssetFormat.PLY,
            filename="output.ply",
            media_type="application/octet-stream",
            source_url=job.output[0],
            data=b"ply\nformat ascii 1.0\n",
        )

    monkeypatch.setattr(generate, "resolve_asset", fake_resolve)
    return fake_gateway


@pytest.mark.asyncio
async def test_run_saves_asset(tmp_path, settings, patched_pipeline):
    patched_pipeline.responses["pred-1"] = [
        make_job("pred-1", "processing"),
        make_job("pred-1", "succeeded", output=["https://cdn.example.com/output.ply"]),
    ]
    output = tmp_path / "cube.ply"
    args = generate.parse_args(["--model", "ply", "--prompt", "a red cube", "-o", str(output)])

    exit_code = await generate.run(args, settings)

    assert exit_code == 0
    assert output.read_bytes() == b"ply\nformat ascii 1.0\n"
    assert patched_pipeline.created[0]["input"] == {"prompt": "a red cube"}


@pytest.mark.asyncio
async def test_run_reports_failed_job(tmp_path, settings, patched_pipeline):
    patched_pipeline.responses["pred-1"] = [make_job("pred-1", "failed", error="bad prompt")]
    args = generate.parse_args(["--model", "ply", "--prompt", "x", "-o", str(tmp_path / "o.ply")])

    assert await generate.run(args, settings) == 1
    assert not (tmp_path / "o.ply").exists()


def test_main_reports_unwritable_output(tmp_path, monkeypatch, settings, patched_pipeline):
    monkeypatch.setattr(generate, "Settings", lambda: settings)
    patched_pipeline.responses["pred-1"] = [
        make_job("pred-1", "succeeded", output=["https://cdn.example.com/output.ply"])
    ]
    output = tmp_path / "missing-dir" / "cube.ply"

    exit_code = generate.main(["--model", "ply", "--prompt", "a red cube", "-o", str(output)])

    assert exit_code == 1
    assert not output.exists()
