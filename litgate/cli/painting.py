import click

import litgate
from litgate.config.constants import DEFAULT_CONFIG_ROOT, USER_LOG_DIR


def echo_version(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(f"{litgate.__title__} {litgate.__version__}", bold=True)
    ctx.exit()


def echo_config_root_path(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(str(DEFAULT_CONFIG_ROOT.absolute()))
    ctx.exit()


def echo_logging_root_path(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.secho(str(USER_LOG_DIR.absolute()))
    ctx.exit()


def paint_result(emitter, payload: str, output_file=None, label: str = "result"):
    if output_file:
        output_file.write_text(payload)
        emitter.message(f"Wrote {label} to {output_file}", color='green')
    else:
        emitter.output(payload)
