from .cli import app


def main() -> None:
    app(prog_name="blackline")


if __name__ == "__main__":
    main()
