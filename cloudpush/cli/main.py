"""cloudpush CLI - Main commands."""
import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

app = typer.Typer(
    name="cloudpush",
    help="Upload exported files to a cloud drive",
    add_completion=False
)
console = Console()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def open_store(token: str, drive_id: Optional[str]):
    from cloudpush import GraphDriveStore
    
    if drive_id:
        return GraphDriveStore.for_drive(token, drive_id)
    return GraphDriveStore(token)


@app.command()
def upload(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    dest: str = typer.Option("/", "--dest", "-d", help="Destination folder path, created if missing"),
    name: str = typer.Option(None, "--name", "-n", help="Remote file name"),
    token: str = typer.Option(..., "--token", envvar="CLOUDPUSH_TOKEN", help="Drive access token"),
    drive_id: str = typer.Option(None, "--drive-id", help="Target drive (e.g. a SharePoint library)"),
    chunk_threshold: int = typer.Option(None, "--chunk-threshold", help="Largest size sent in one request"),
):
    """Upload a file, replacing any item with the same name."""
    from cloudpush import UploadFacade, UploaderConfig
    from cloudpush.core.upload.models import UploadProgress
    
    config = UploaderConfig.default()
    if chunk_threshold is not None:
        config.chunk_threshold = chunk_threshold
    
    async def do_upload():
        async with open_store(token, drive_id) as store:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {file_path.name}", total=100)
                
                def on_progress(p: UploadProgress):
                    progress.update(task, completed=p.percentage)
                
                return await UploadFacade(config).upload_file(
                    store,
                    file_path,
                    dest,
                    name=name,
                    progress_callback=on_progress
                )
    
    result = run_async(do_upload())
    if not result.success:
        console.print(f"[red]Upload failed: {result.error}[/red]")
        raise typer.Exit(1)
    
    console.print(f"[green]Uploaded:[/green] {result.file_name}")
    console.print(f"Item: {result.item_id}")
    console.print(f"Size: {result.size:,} bytes ({result.strategy.value})")


@app.command()
def probe(
    token: str = typer.Option(..., "--token", envvar="CLOUDPUSH_TOKEN", help="Drive access token"),
    drive_id: str = typer.Option(None, "--drive-id", help="Target drive"),
):
    """Check that the access token is accepted."""
    from cloudpush import UploadOrchestrator, TransportError
    
    async def do_probe():
        async with open_store(token, drive_id) as store:
            return await UploadOrchestrator().probe(store)
    
    try:
        ok = run_async(do_probe())
    except TransportError as e:
        console.print(f"[red]Could not reach the drive: {e}[/red]")
        raise typer.Exit(2)
    
    if ok:
        console.print("[green]Credentials accepted[/green]")
    else:
        console.print("[red]Credentials rejected[/red]")
        raise typer.Exit(1)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
