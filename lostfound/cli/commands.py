"""CLI commands for image comparison."""
import asyncio
import json
import click
from pathlib import Path

from lostfound.exceptions import ImageComparisonError
from lostfound.services.comparison_service import ImageComparisonService
from lostfound.services.vision_provider import GoogleVisionProvider
from lostfound.utils.config_loader import load_config, get_config
from lostfound.utils.image_utils import preprocess_image


def _build_service() -> ImageComparisonService:
    cfg = get_config()
    threshold = cfg.get("matching", {}).get("threshold", 50.0)
    return ImageComparisonService(GoogleVisionProvider.from_config(cfg), threshold=threshold)


def _load_reference(image: str) -> str | bytes:
    """Local files are sent as preprocessed content, anything else as a URL."""
    path = Path(image)
    if path.is_file():
        files_cfg = get_config().get("files", {})
        return preprocess_image(
            path.read_bytes(), max_dim=files_cfg.get("max_dim", 1920),
            allowed_formats=files_cfg.get("allowed_formats")
        )
    return image


@click.group()
def cli():
    """Lost and Found Image Comparison CLI."""
    load_config()


@cli.command()
@click.argument("image")
@click.option("--json", "as_json", is_flag=True, help="Print raw analysis as JSON")
def analyze(image: str, as_json: bool):
    """Analyze an image URL or local image file."""
    service = _build_service()

    try:
        analysis = asyncio.run(service.analyze(_load_reference(image)))
    except ImageComparisonError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps({"data": analysis.to_dict()}, indent=2))
        return

    click.echo(f"Labels ({len(analysis.labels)}): {', '.join(analysis.labels) or '-'}")
    click.echo(f"Objects ({len(analysis.objects)}):")
    for obj in analysis.objects:
        click.echo(f"  - {obj.name} ({obj.score:.2%})")
    click.echo(f"Web entities ({len(analysis.web_entities)}): {', '.join(analysis.web_entities) or '-'}")


@cli.command()
@click.argument("image1")
@click.argument("image2")
@click.option("--json", "as_json", is_flag=True, help="Print result as JSON")
def compare(image1: str, image2: str, as_json: bool):
    """Compare two images (URLs or local files)."""
    service = _build_service()

    try:
        result = asyncio.run(service.compare_images(_load_reference(image1), _load_reference(image2)))
    except ImageComparisonError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    d = result.details
    click.echo(f"Similarity: {result.similarity_score:.2f}")
    click.echo(f"  Labels:       {d.label_similarity:.2f}")
    click.echo(f"  Objects:      {d.object_similarity:.2f}")
    click.echo(f"  Web entities: {d.web_entity_similarity:.2f}")
    if result.similarity_score >= service.threshold:
        click.echo("Likely match.")


@cli.command()
def config():
    """Show current configuration."""
    import yaml
    click.echo(yaml.dump(get_config(), default_flow_style=False))


if __name__ == "__main__":
    cli()
