"""Document type and attachment commands."""

import click
from bookkeeper.cli.error_handling import handle_domain_error
from bookkeeper.domain.documents import DocumentService


@click.group()
def document_group():
    """Manage document types and documents attached to transactions."""
    pass


@document_group.command("type-create")
@click.argument("name")
@click.option("--description", help="Description")
@click.option("--required", is_flag=True, help="Needed before a transaction can be reconciled")
@click.pass_context
def create_document_type(ctx, name: str, description: str | None, required: bool):
    """Create a document type."""
    service = DocumentService(ctx.obj["db"], ctx.obj["owner"])
    try:
        type_id = service.create_document_type(name, description=description, is_required=required)
        click.echo(f"Created document type '{name}' (ID: {type_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@document_group.command("type-list")
@click.pass_context
def list_document_types(ctx):
    """List document types."""
    types = DocumentService(ctx.obj["db"], ctx.obj["owner"]).list_document_types()
    if not types:
        click.echo("No document types found.")
        return
    for doc_type in types:
        required = " (required)" if doc_type.is_required else ""
        click.echo(f"ID: {doc_type.id:3d} | {doc_type.name}{required}")


@document_group.command("attach")
@click.argument("transaction_id", type=int)
@click.argument("document_type_id", type=int)
@click.argument("file_name")
@click.pass_context
def attach_document(ctx, transaction_id: int, document_type_id: int, file_name: str):
    """Record a document attached to a transaction.

    Only the metadata is stored; the file itself stays where it is.
    """
    service = DocumentService(ctx.obj["db"], ctx.obj["owner"])
    try:
        document_id = service.attach_document(
            transaction_id, document_type_id, file_name, uploaded_by=ctx.obj["owner"]
        )
        click.echo(f"Attached document {document_id} to transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@document_group.command("detach")
@click.argument("document_id", type=int)
@click.pass_context
def detach_document(ctx, document_id: int):
    """Remove a document from its transaction."""
    service = DocumentService(ctx.obj["db"], ctx.obj["owner"])
    try:
        service.detach_document(document_id)
        click.echo(f"Detached document {document_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@document_group.command("list")
@click.argument("transaction_id", type=int)
@click.pass_context
def list_documents(ctx, transaction_id: int):
    """List documents attached to a transaction."""
    service = DocumentService(ctx.obj["db"], ctx.obj["owner"])
    documents = service.list_documents(transaction_id)
    if not documents:
        click.echo("No documents found.")
    for document in documents:
        click.echo(
            f"ID: {document.id:3d} | type {document.document_type_id} | {document.file_name} | "
            f"{document.uploaded_at:%Y-%m-%d} by {document.uploaded_by}"
        )
    completeness = service.check_completeness(transaction_id)
    click.echo(
        f"Required documents: {completeness.attached_count} of {completeness.threshold}"
    )


def register_commands(cli):
    """Register document commands with main CLI."""
    cli.add_command(document_group, name="document")
