import logging
import pathlib
import sys

from typing import List, Optional
from typing_extensions import Annotated

import typer.core

typer.core.rich = None

import typer  # noqa: E402

from ..exceptions import FatalError, iterate_errors  # noqa: E402
from ..settings import Settings  # noqa: E402
from . import loaders  # noqa: E402


app = typer.Typer(add_completion=False)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option('--verbose', '-v')] = False,
    debug: Annotated[bool, typer.Option('--debug', '-d')] = False,
) -> None:
    """
    Watch a custom resource and pass its events to a handler.
    """
    setattr(ctx, 'obj', {})

    logging.basicConfig(
        level=logging.ERROR,
        format='%(levelname)s: %(module)s: %(message)s',
        stream=sys.stderr,
    )
    log = logging.getLogger('crinformer')
    log_level = logging.ERROR
    if verbose:
        log_level = logging.INFO
    elif debug:
        log_level = logging.DEBUG
    log.setLevel(log_level)
    ctx.obj['log_level'] = log_level
    ctx.obj['log'] = log


def _fatal_error(exc):
    for error in iterate_errors(exc):
        if isinstance(error, FatalError):
            return error
    return None


@app.command(name='run', short_help='Watch the resource of the loaded event handler.')
def run(
    ctx: typer.Context,
    paths: Annotated[List[pathlib.Path], typer.Argument()] = None,
    modules: Annotated[
        List[str],
        typer.Option('--module', '-m', help='Import the given module. Can be given multiple times.'),
    ] = None,
    namespace: Annotated[
        Optional[str],
        typer.Option(
            '--namespace',
            '-n',
            envvar='CRINFORMER_NAMESPACE',
            help='Watch the given namespace instead of the default.',
        ),
    ] = None,
    config: Annotated[
        Optional[pathlib.Path],
        typer.Option('--config', envvar='CRINFORMER_CONFIG', help='Load settings from this yaml file.'),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option('--timeout', help='Seconds to wait for events before checking for shutdown.'),
    ] = None,
    max_retries: Annotated[
        Optional[int],
        typer.Option('--max-retries', help='Reconnect attempts before giving up.'),
    ] = None,
) -> None:
    log = ctx.obj['log']
    try:
        if config is not None:
            settings = Settings.from_file(config)
        else:
            settings = Settings()
        settings = settings.replace(
            namespace=namespace,
            timeout=timeout,
            max_retries=max_retries,
        )
        loaders.preload(
            paths=paths or [],
            modules=modules or [],
        )
        from crinformer import operator

        operator.run(settings)
    except (FatalError, BaseExceptionGroup) as e:
        error = _fatal_error(e)
        if error is None:
            raise
        log.debug('fatal error', exc_info=e)
        typer.echo(f'Error: {error}', err=True)
        raise typer.Exit(code=error.exit_code)


if __name__ == '__main__':
    app()
