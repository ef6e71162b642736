from rich.pretty import pprint

from optline import *


if __name__ == '__main__':
    help = Value(bool, False)
    compression = Value(int)
    files = []

    parser = (
        CommandLineParser()
        .add_flag(help, "help,h", "print help")
        .add(compression, "+compression,c,level", "compression level")
        .add(files, "+,,path", "file path(s)", -1)
    )
    if not parser.parse():
        parser.fail()
    if help.value:
        parser.print_help()
        raise SystemExit(0)
    if not parser.check_required():
        parser.fail()
    if compression.value is not None:
        print("compression level is", compression.value)
    pprint(parser)
