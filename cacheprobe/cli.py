import click
import sys
import asyncio
from cacheprobe.utils.logger import setup_logger, logger
from cacheprobe.engine import GRAPHQL_PATH, Monitor, Sampler, build_graphql_url
from cacheprobe.exceptions import CacheProbeError, InvalidConfiguration
from cacheprobe.http_client import HttpClient, VERSION
from cacheprobe.output import INFO_COLUMNS, LOG_COLUMNS, print_result
from cacheprobe.utils.recorder import CsvRecorder


async def take_sample(url, timeout=None):
    async with HttpClient(timeout=timeout) as client:
        return await Sampler(client, url).sample()


async def run_monitor(url, log_folder, run_time, interval, timeout=None):
    recorder = CsvRecorder(log_folder, url)
    async with HttpClient(timeout=timeout) as client:
        monitor = Monitor(
            Sampler(client, url),
            recorder=recorder,
            run_time=run_time,
            interval=interval,
            on_sample=lambda result: print_result(result, LOG_COLUMNS),
        )
        return await monitor.run()


def _run(coro):
    try:
        return asyncio.run(coro)
    except CacheProbeError as e:
        logger.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=VERSION)
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose logging.")
@click.option('--quiet', '-q', is_flag=True, help="Suppress informational output.")
@click.option('--log-level', '-l', help="Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). overrides -v and -q.")
@click.option('--url', '-u', envvar="WORDPRESS_URL", help="WordPress URL (required by every command).")
@click.option('--graphql-path', '-g', default=GRAPHQL_PATH, show_default=True, envvar="GRAPHQL_PATH", help="GraphQL URI.")
@click.option('--timeout', '-t', type=float, default=None, help="Request timeout in seconds (default: none).")
@click.pass_context
def cli(ctx, verbose, quiet, log_level, url, graphql_path, timeout):
    """
    CacheProbe - reports the caching configuration of a WordPress GraphQL endpoint on WP Engine.
    """
    try:
        setup_logger(verbose, quiet, log_level)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--log-level")

    graphql_url = None
    if url is not None:
        try:
            graphql_url = build_graphql_url(url, graphql_path)
        except InvalidConfiguration as e:
            raise click.BadParameter(str(e), param_hint="--url")

    ctx.obj = {"url": graphql_url, "timeout": timeout}


def _graphql_url(obj):
    if obj["url"] is None:
        raise click.UsageError("Missing option '--url' (or WORDPRESS_URL).")
    return obj["url"]


@cli.command()
@click.pass_obj
def info(obj):
    """
    Provides info on the current caching configuration of your WPGraphQL endpoint.
    """
    result = _run(take_sample(_graphql_url(obj), obj["timeout"]))
    print_result(result, INFO_COLUMNS)


@cli.command()
@click.option('--run-time', '-r', type=float, default=60, show_default=True, envvar="RUN_TIME", help="Run time in seconds (0 or less runs forever).")
@click.option('--interval', '-i', type=float, default=5, show_default=True, envvar="INTERVAL", help="Interval between requests in seconds (minimum 1).")
@click.option('--log-folder', '-o', default="./logs", show_default=True, envvar="LOG_FOLDER", help="Log folder path.")
@click.pass_obj
def log(obj, run_time, interval, log_folder):
    """
    Logs the current caching configuration of your WPGraphQL endpoint over time.
    """
    url = _graphql_url(obj)
    logger.info(f"Run time: {run_time} seconds, interval: {interval} seconds, log folder: {log_folder}")
    samples = _run(run_monitor(url, log_folder, run_time, interval, obj["timeout"]))
    logger.info(f"Load test completed ({samples} samples).")

if __name__ == "__main__":
    cli()
