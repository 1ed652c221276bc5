import logging
import sys
import traceback

from basic_errors import BasicError
from interpreter import Interpreter
from lexer import tokenize
from parser import parse

logger = logging.getLogger("simplebasic.cli")
logger.addHandler(logging.NullHandler())


def load_source(path):
    # the lexer only ever sees one complete string
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def run_source(source, io=None, **kwargs):
    tokens = tokenize(source)
    logger.debug("Lexed %d tokens", len(tokens))
    program = parse(tokens)
    logger.debug("Parsed %d statements", len(program.statements))
    interpreter = Interpreter(program, io, **kwargs)
    interpreter.interpret()
    return interpreter


def cmd_run(path, debug: bool = False):
    try:
        source = load_source(path)
        run_source(source)
    except OSError as e:
        print(f"Cannot read {path}: {e}")
        sys.exit(1)
    except BasicError as e:
        if debug:
            traceback.print_exc()
        else:
            print(str(e))
        sys.exit(1)


def usage():
    print("Usage:")
    print("  python cli.py run <file.bas>")
    print("  (optional) --debug to enable debug logging and show Python tracebacks")


def main():
    debug = False
    if "--debug" in sys.argv:
        debug = True
        sys.argv.remove("--debug")
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if len(sys.argv) != 3 or sys.argv[1] != "run":
        usage()
        sys.exit(1)

    cmd_run(sys.argv[2], debug=debug)


if __name__ == "__main__":
    main()
