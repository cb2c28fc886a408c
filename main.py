import sys


if __name__ == "__main__":
    if len(sys.argv) > 1:
        from ktxgen.cli import main as cli_main

        raise SystemExit(cli_main())
    from ktxgen.app import main

    main()
