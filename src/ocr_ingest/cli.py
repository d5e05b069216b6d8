"""Main CLI entry point."""

import json
import logging
import mimetypes
import sys
import uuid
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ocr_ingest.config import OCRConfig
from ocr_ingest.errors import DocumentIngestionError
from ocr_ingest.pipeline import FileDescriptor, RequesterContext, upload_mistral_ocr
from ocr_ingest.providers.mistral import MistralProvider
from ocr_ingest.transport import Transport

console = Console(stderr=True)
load_dotenv()


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("ocr_ingest")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=console, show_path=False))


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--api-key",
    default=None,
    help="API key or ${VAR} placeholder (defaults to ${OCR_API_KEY}).",
)
@click.option(
    "--base-url",
    default=None,
    help="API base URL or ${VAR} placeholder (defaults to ${OCR_BASEURL}).",
)
@click.option(
    "--model", "-m",
    default=None,
    help="OCR model name or ${VAR} placeholder (defaults to $OCR_MODEL or mistral-ocr-latest).",
)
@click.option(
    "--user-id",
    default="local",
    show_default=True,
    help="User whose stored credentials are consulted for placeholders.",
)
@click.option(
    "--mimetype",
    default=None,
    help="MIME type of the input (guessed from the file name if omitted).",
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path. Defaults to stdout.",
)
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["markdown", "json"], case_sensitive=False),
    default="markdown",
    show_default=True,
    help="Write the aggregated markdown, or the full result as JSON.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-request timeout in seconds. No timeout by default.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every pipeline stage.")
@click.version_option(package_name="ocr-ingest")
def main(
    input_path, api_key, base_url, model, user_id, mimetype, output, output_format,
    timeout, verbose,
):
    """OCR a document or image with the Mistral OCR API.

    INPUT_PATH is uploaded to Mistral, OCR'd, and the page text is merged
    into one markdown document. Results are written to stdout unless
    --output is specified.
    """
    _configure_logging(verbose)

    config = OCRConfig.from_env(
        api_key_override=api_key,
        base_url_override=base_url,
        model_override=model,
    )
    file = FileDescriptor(
        path=str(input_path),
        originalname=input_path.name,
        mimetype=mimetype or mimetypes.guess_type(input_path.name)[0] or "",
    )

    with Transport(timeout=timeout) as transport:
        provider = MistralProvider(transport=transport)
        try:
            with console.status(f"[cyan]Running OCR on {input_path.name}..."):
                result = upload_mistral_ocr(
                    RequesterContext(user_id=user_id, ocr_config=config),
                    file,
                    file_id=uuid.uuid4().hex,
                    provider=provider,
                )
        except DocumentIngestionError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(1)

    if output_format == "json":
        rendered = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    else:
        rendered = result.text

    console.print(f"[dim]{len(result.text)} characters, {len(result.images)} image(s)[/dim]")

    if output:
        output.write_text(rendered, encoding="utf-8")
        console.print(f"[green]Written to {output}[/green]")
    else:
        click.echo(rendered)
