"""Command line interface for glslcompat.

Parsing GLSL is left to a front-end: the ``patch`` command imports a Python file
that builds the stage documents (for example by converting the output of a
parser) and prints the patched stages.
"""

import importlib.util
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, TypeVar, cast

import typer
from loguru import logger

from glslcompat.config import CompatConfig
from glslcompat.transformer import (
    PIPELINE,
    Document,
    PatchShaderType,
    TransformerError,
    patch_pipeline,
)

# Define type variables for TypedCallable
F = TypeVar("F", bound=Callable[..., Any])

# Name of the function a pipeline file has to expose
PIPELINE_FACTORY = "build_pipeline"


# TypedCommand decorator helper
def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="glslcompat",
    help=(
        "Patch multi-stage GLSL shader programs for driver compatibility. "
        "Commands: patch, stages."
    ),
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _load_pipeline_module(file_path: str) -> Any:
    """Load a Python file as a module.

    Args:
        file_path: Path to the Python file

    Returns:
        Loaded module
    """
    abs_path = os.path.abspath(file_path)
    module_dir = os.path.dirname(abs_path)
    module_name = os.path.splitext(os.path.basename(abs_path))[0]

    # Add module directory to path if not already there
    if module_dir not in sys.path:
        sys.path.insert(0, module_dir)

    spec = importlib.util.spec_from_file_location(module_name, abs_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load module from {file_path}")

    pipeline_module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(pipeline_module)

    return pipeline_module


def _build_trees(module: Any) -> dict[PatchShaderType, Document]:
    """Call the module's pipeline factory and key the result by shader variant.

    Keys may be ``PatchShaderType`` members or variant names like "vertex".
    """
    factory = getattr(module, PIPELINE_FACTORY, None)
    if not callable(factory):
        raise ValueError(f"The pipeline file does not define {PIPELINE_FACTORY}()")

    trees: dict[PatchShaderType, Document] = {}
    for key, document in factory().items():
        patch_type = key if isinstance(key, PatchShaderType) else PatchShaderType.from_name(key)
        if not isinstance(document, Document):
            raise ValueError(f"Stage {patch_type.variant_name} is not a Document")
        trees[patch_type] = document
    return trees


@typed_command(app.command("patch"))
def patch(
    pipeline_file: str = typer.Argument(
        ..., help=f"Python file defining {PIPELINE_FACTORY}()"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Write each stage to <dir>/<stage>.glsl"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every warning instead of throttling repeats"
    ),
) -> None:
    """Normalize and reconcile a shader pipeline and print the patched stages.

    Example: glslcompat patch examples/mismatched_pipeline.py
    """
    _configure_logging(verbose)
    config = CompatConfig.from_env()
    config.verbose_diagnostics = config.verbose_diagnostics or verbose

    try:
        trees = _build_trees(_load_pipeline_module(pipeline_file))
        sources = patch_pipeline(trees, config)
    except ImportError as e:
        logger.error(f"Failed to load pipeline file: {e}")
        raise typer.Exit(1) from e
    except ValueError as e:
        logger.error(f"Invalid pipeline: {e}")
        raise typer.Exit(1) from e
    except TransformerError as e:
        logger.error(f"Compatibility transformation failed: {e}")
        raise typer.Exit(1) from e

    for patch_type, source in sources.items():
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            target = output_dir / f"{patch_type.variant_name}.glsl"
            target.write_text(source)
            logger.info(f"Wrote {patch_type.variant_name} shader to {target}")
        else:
            typer.echo(f"// {patch_type.variant_name}")
            typer.echo(source)


@typed_command(app.command("stages"))
def stages() -> None:
    """List the pipeline stages in reconciliation order and their variants."""
    for shader_type in PIPELINE:
        variants = ", ".join(
            t.variant_name for t in PatchShaderType.from_gl_shader_type(shader_type)
        )
        typer.echo(f"{shader_type.value}: {variants}")


if __name__ == "__main__":
    app()
