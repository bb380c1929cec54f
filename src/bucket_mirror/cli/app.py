from typing import Optional

import typer


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import bucket_mirror

        typer.echo(f"bucket-mirror version: {bucket_mirror.__version__}")
        raise typer.Exit()


app = typer.Typer(name="bucket-mirror")


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """bucket-mirror - keep an S3 bucket in step with a Dropbox tree."""
