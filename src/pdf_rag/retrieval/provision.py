"""Provision the vector collection the service writes to and reads from.

Creating a collection fixes its distance metric, which the pipelines never
decide on their own; run this once per deployment::

    python -m pdf_rag.retrieval.provision --distance cosine
"""

from __future__ import annotations

import typer

from pdf_rag.config import configure_logging, settings
from pdf_rag.errors import VectorIndexError
from pdf_rag.retrieval.models import Distance

app = typer.Typer(help="Vector collection provisioning")


@app.command()
def provision(
    name: str = typer.Option(settings.chroma_collection, help="Collection name"),
    distance: Distance = typer.Option(Distance(settings.chroma_distance), help="Similarity metric"),
    host: str = typer.Option(settings.chroma_host, help="Chroma server host"),
    port: int = typer.Option(settings.chroma_port, help="Chroma server port"),
) -> None:
    """Create the collection if it does not exist yet."""
    from pdf_rag.retrieval.chroma_store import ChromaVectorIndex

    configure_logging()
    index = ChromaVectorIndex(host=host, port=port)
    try:
        collection = index.create_collection(name, distance)
    except VectorIndexError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(1) from exc
    typer.echo(f"Collection {collection.name!r} ready (distance={collection.distance.value})")


if __name__ == "__main__":
    app()
