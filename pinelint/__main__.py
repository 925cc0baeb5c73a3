"""Entry point for the pinelint CLI when run as python -m pinelint."""

if __name__ == "__main__":
    from pinelint.cli import main

    main()
