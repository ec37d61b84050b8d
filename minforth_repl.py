import sys
from pathlib import Path

from minforth.forth_runtime import Forth
from minforth.forth_printer import Printer

# A basic input prompt.
def finput(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()

def run_script_file(file_path: str):
    """Run a minforth source file as one program and exit with appropriate status."""
    forth = Forth()
    printer = Printer()
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    result = forth.handle_script(source)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        raise SystemExit(1)
    print(printer.pformat(forth.stack()))

def main(argv=None):
    """Run a script file when provided, otherwise start the interactive REPL."""
    argv = sys.argv[1:] if argv is None else argv
    if argv and not argv[0].startswith("-"):
        run_script_file(argv[0])
        return

    print("minforth REPL v0.1")
    print("Type 'bye' or press Ctrl+D to quit.")

    forth = Forth()
    printer = Printer()

    while True:
        try:
            raw = finput(">> ")
            if raw == "":
                raise EOFError
            line = raw.strip()

            if not line:
                continue
            if line.lower() in ("bye", "exit"):
                break

            result = forth.handle_script(line)

            if result.status == 'error':
                print(result.format_error(), file=sys.stderr)
                continue

            print(f"{printer.pformat(result.value)} ok")

        except EOFError:
            print("\nExiting.")
            break

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
