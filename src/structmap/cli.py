"""
Command-line interface for inspecting generated mappings.

Prints the binding plan a pipeline generates for a pair of types, so the
effect of a convention order or a settings file can be checked without
writing code.
"""

import argparse
import importlib
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from .core.convention_registry import get_global_registry, register_builtin_conventions
from .core.pipeline import MappingPipeline
from .exceptions import ConfigurationError, StructMapError
from .io.config_loader import load_pipeline

EXIT_OK = 0
EXIT_MAPPING_ERROR = 1
EXIT_USAGE_ERROR = 2


@dataclass
class TypeSpec:
    """A type reference given on the command line as MODULE:QUALNAME."""

    module: str
    qualname: str

    def resolve(self) -> type:
        """
        Import the module and walk the qualified name.

        Raises:
            ValueError: If the module or attribute cannot be found, or the
                target is not a class
        """
        try:
            target: object = importlib.import_module(self.module)
        except ImportError as e:
            raise ValueError(f"Cannot import module '{self.module}': {e}") from e

        for part in self.qualname.split("."):
            try:
                target = getattr(target, part)
            except AttributeError as e:
                raise ValueError(
                    f"Module '{self.module}' has no attribute '{self.qualname}'"
                ) from e

        if not isinstance(target, type):
            raise ValueError(f"'{self}' is not a class")
        return target

    def __str__(self) -> str:
        return f"{self.module}:{self.qualname}"


def parse_type_argument(type_arg: str) -> TypeSpec:
    """
    Parse a type argument in MODULE:QUALNAME format.

    Raises:
        ValueError: If the argument format is invalid
    """
    if ":" not in type_arg:
        raise ValueError(
            f"Invalid type format: '{type_arg}'. "
            "Expected format: MODULE:QUALNAME (e.g., 'shop.models:Order')"
        )

    module, qualname = type_arg.split(":", 1)

    if not module.strip() or not qualname.strip():
        raise ValueError(
            f"Incomplete type reference: '{type_arg}'. "
            "Expected format: MODULE:QUALNAME (e.g., 'shop.models:Order')"
        )

    return TypeSpec(module=module.strip(), qualname=qualname.strip())


def configure_logging(debug: bool = False, verbose: bool = False) -> None:
    """Configure application logging.

    Args:
        debug: Enable debug-level logging if True.
        verbose: Enable info-level logging from the engine if True.
    """
    if debug:
        level = logging.DEBUG
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    elif verbose:
        level = logging.INFO
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    else:
        level = logging.WARNING
        format_str = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        stream=sys.stderr,
        force=True,  # Override existing configuration
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="structmap",
        description="Inspect convention-based object-to-object mappings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show how Order is mapped to OrderDto with the stock conventions
  structmap plan shop.models:Order shop.dto:OrderDto

  # Same, with a settings file choosing conventions and policy
  structmap plan shop.models:Order shop.dto:OrderDto --config mapping.yaml

  # List convention names usable in settings files
  structmap conventions
        """,
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging for detailed output"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable info logging from the mapping engine",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser(
        "plan", help="Print the binding plan generated for a pair of types"
    )
    plan.add_argument("source", metavar="SOURCE", help="Source type, MODULE:QUALNAME")
    plan.add_argument("target", metavar="TARGET", help="Target type, MODULE:QUALNAME")
    plan.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Pipeline settings file (.yaml, .yml or .json)",
    )

    subparsers.add_parser("conventions", help="List registered convention names")
    return parser


def show_conventions() -> int:
    """Print the registered convention names."""
    register_builtin_conventions()
    registry = get_global_registry()

    print("Available Conventions:")
    print("=" * 50)
    for name in registry.get_available_names():
        convention_class = registry.get_convention_class(name)
        doc = (convention_class.__doc__ or "").strip().splitlines()
        summary = doc[0] if doc else "No description available"
        print(f"  {name:<22} - {summary}")
    return EXIT_OK


def show_plan(source: TypeSpec, target: TypeSpec, config: Path | None) -> int:
    """Generate the mapping for a pair and print its bindings."""
    logger = logging.getLogger(__name__)

    source_type = source.resolve()
    target_type = target.resolve()
    pipeline = load_pipeline(config) if config else MappingPipeline()
    logger.info(f"Using {pipeline!r}")

    mapping = pipeline.get_mapping(source_type, target_type)

    print(f"{source_type.__name__} -> {target_type.__name__}")
    bindings = mapping.describe()
    if not bindings:
        print("  (no bindings; every target field keeps its default)")
    width = max((len(name) for name, _ in bindings), default=0)
    for name, origin in bindings:
        print(f"  {name:<{width}} <- {origin}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Entry point of the `structmap` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug, args.verbose)
    logger = logging.getLogger(__name__)

    if args.command == "conventions":
        return show_conventions()

    try:
        source = parse_type_argument(args.source)
        target = parse_type_argument(args.target)
        return show_plan(source, target, args.config)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    except ConfigurationError as e:
        logger.debug("Configuration failure", exc_info=True)
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return EXIT_MAPPING_ERROR
    except StructMapError as e:
        logger.debug("Mapping failure", exc_info=True)
        print(f"❌ Mapping error: {e}", file=sys.stderr)
        return EXIT_MAPPING_ERROR


if __name__ == "__main__":
    sys.exit(main())
