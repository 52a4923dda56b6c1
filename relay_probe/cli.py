"""Command-line interface for relay-probe."""

import asyncio
from pathlib import Path

import click

from relay_probe.verify.concurrent.runner import CONCURRENCY_LIMIT, VerificationRunner
from relay_probe.verify.config import DEFAULT_CONFIG_NAME, ConfigLoader, ConfigValidator
from relay_probe.verify.exceptions import ConfigurationError
from relay_probe.verify.export import export_csv, export_filename
from relay_probe.verify.factory import ProberFactory
from relay_probe.verify.http.client import HTTPClient
from relay_probe.verify.logging import configure_logging
from relay_probe.verify.models import (
    ProbeOutcome,
    RunState,
    TargetConfig,
    VerificationStatus,
)
from relay_probe.verify.presets import MODEL_PRESETS
from relay_probe.verify.targets import Target, TargetRegistry

ERROR_DISPLAY_LENGTH = 60


def _print_progress(state: RunState, outcome: ProbeOutcome) -> None:
    mark = "✓" if outcome.status == VerificationStatus.VALID else "✗"
    click.echo(
        f"  [{state.progress:3d}%] {mark} {outcome.credential_masked:<12} "
        f"{outcome.latency_ms:>6} ms",
        err=True,
    )


def _print_report(target: Target) -> None:
    state = target.run_state
    click.echo(f"\n{target.name}  ({target.config.protocol.value} · "
               f"{target.config.model} · {target.config.display_base_url})")
    click.echo("-" * 72)

    if state is None:
        click.echo("  no credentials, skipped")
        return

    for index, outcome in enumerate(state.results, 1):
        error = outcome.error or ""
        if len(error) > ERROR_DISPLAY_LENGTH:
            error = error[:ERROR_DISPLAY_LENGTH - 3] + "..."
        click.echo(
            f"  {index:>3}  {outcome.credential_masked:<12} {outcome.status.value:<8} "
            f"{outcome.latency_ms:>6} ms  {error}"
        )

    stats = state.stats()
    click.echo(
        f"  total={stats.total} valid={stats.valid} invalid={stats.invalid} "
        f"avg_latency={stats.avg_latency_ms} ms"
    )


def _build_registry(
    runner, config_dir, config_name, target_names, protocol, base_url, model, keys_file
) -> TargetRegistry:
    validator = ConfigValidator()

    if keys_file is not None:
        config = TargetConfig(protocol=protocol, model=model, base_url=base_url or "")
        errors = validator.validate_target("adhoc", config)
        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            )
        registry = TargetRegistry(runner)
        registry.add_target(
            name="adhoc",
            config=config,
            api_keys_text=keys_file.read(),
        )
        return registry

    targets_file = ConfigLoader(Path(config_dir)).load_config(config_name)
    if target_names:
        missing = [name for name in target_names if name not in targets_file.targets]
        if missing:
            raise ConfigurationError(
                f"Unknown target(s): {', '.join(missing)}. "
                f"Available targets: {', '.join(targets_file.targets)}"
            )
        targets_file.targets = {
            name: targets_file.targets[name] for name in target_names
        }

    errors = validator.validate_config(targets_file)
    if errors:
        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(errors)
        )
    for warning in validator.warnings:
        click.echo(f"warning: {warning}", err=True)

    return TargetRegistry.from_targets_file(targets_file, runner)


async def _run(registry: TargetRegistry, http_client: HTTPClient) -> None:
    async with http_client:
        await registry.run_all()


@click.command()
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default="./config",
    help="Directory containing target files (default: ./config)",
)
@click.option(
    "--config",
    "config_name",
    default=DEFAULT_CONFIG_NAME,
    help=f"Target file to use (filename without .yaml, defaults to '{DEFAULT_CONFIG_NAME}')",
)
@click.option("--target", "target_names", multiple=True, help="Only run the named target (repeatable)")
@click.option(
    "--protocol",
    type=click.Choice(["google", "openai"], case_sensitive=False),
    default="google",
    help="Protocol for an ad-hoc target given with --keys-file",
)
@click.option("--base-url", default="", help="Alternate endpoint for an ad-hoc target")
@click.option("--model", default="gemini-1.5-flash", help="Model id for an ad-hoc target")
@click.option(
    "--keys-file",
    type=click.File("r"),
    help="File with one credential per line ('-' for stdin); skips the target file",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=CONCURRENCY_LIMIT,
    show_default=True,
    help="Maximum probes in flight per target",
)
@click.option("--timeout", type=float, default=30, show_default=True, help="Per-request timeout in seconds")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    help="Write one CSV per target (unmasked keys) into this directory",
)
@click.option("--list-targets", is_flag=True, help="List target files and their targets")
@click.option("--list-models", is_flag=True, help="List known model ids")
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
def main(
    config_dir,
    config_name,
    target_names,
    protocol,
    base_url,
    model,
    keys_file,
    concurrency,
    timeout,
    output_dir,
    list_targets,
    list_models,
    verbose,
    json_logs,
):
    """Check a batch of LLM API keys against Google or OpenAI-compatible endpoints.

    Every key gets exactly one minimal request; results are reported per key
    with latency, in input order.
    """
    configure_logging(
        debug_mode=verbose,
        log_level=None if verbose else "WARNING",
        structured=json_logs,
    )

    if list_models:
        for group, presets in MODEL_PRESETS.items():
            click.echo(f"{group}:")
            for label, model_id in presets:
                click.echo(f"  {model_id:<28} {label}")
        return

    try:
        if list_targets:
            loader = ConfigLoader(Path(config_dir))
            for name in loader.list_available_configs():
                try:
                    targets_file = loader.load_config(name)
                except ConfigurationError as e:
                    click.echo(f"{name}: invalid ({e})")
                    continue
                click.echo(f"{name}:")
                for definition in targets_file.targets.values():
                    click.echo(
                        f"  {definition.name:<20} {definition.config.protocol.value:<7} "
                        f"{definition.config.model:<24} keys={definition.credential_count}"
                    )
            return

        http_client = HTTPClient(timeout=timeout)
        runner = VerificationRunner(
            ProberFactory(http_client),
            concurrency_limit=concurrency,
            on_update=_print_progress,
        )
        registry = _build_registry(
            runner, config_dir, config_name, target_names,
            protocol, base_url, model, keys_file,
        )
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    asyncio.run(_run(registry, http_client))

    for target in registry.list():
        _print_report(target)

    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for target in registry.list():
            if target.run_state is None:
                continue
            path = out / export_filename(target.name)
            with open(path, "w", encoding="utf-8", newline="") as f:
                export_csv(target.run_state, target.config, f)
            click.echo(f"Wrote {path}")


if __name__ == "__main__":
    main()
