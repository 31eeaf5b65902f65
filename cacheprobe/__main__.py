from cacheprobe.cli import cli

cli()
