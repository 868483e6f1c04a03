"""Command line interface for mdlquery"""

import sys

import click

from mdlquery.exceptions import MdlQueryError
from mdlquery.mdl_lexer import tokenize
from mdlquery.mdl_parser import parse_model
from mdlquery.schema import SchemaRegistry


def _read(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return source


@click.group()
def main():
    """Entrypoint for the mdlquery CLI"""


@main.command()
@click.argument("source")
def tokens(source: str):
    """
    Print the tokens of a model definition, one per line
    """
    for token in tokenize(_read(source)):
        click.echo(f"{token.type} {token.value} @{token.lexpos}")


@main.command()
@click.argument("source")
@click.option("--json", "as_json", is_flag=True, help="Print the AST as JSON.")
def parse(source: str, as_json: bool):
    """
    Parse a model definition and print its AST
    """
    model = parse_model(_read(source))
    if as_json:
        click.echo(model.model_dump_json(indent=2))
    else:
        model.print_tree()


@main.command()
@click.argument("source")
def validate(source: str):
    """
    Validate a model definition
    """
    try:
        parse_model(_read(source))
    except MdlQueryError as error:
        click.echo(f"Invalid model definition: {error.message}")
        sys.exit(1)
    click.echo("OK")
    sys.exit(0)


@main.command()
@click.argument("source")
def schema(source: str):
    """
    Print the path of every field of a model definition
    """
    model_schema = SchemaRegistry().define(_read(source))
    for field in model_schema.fields():
        click.echo(f"{field.field.attribute.value}: {field}")
