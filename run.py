import sys

from lantern.cli import main

if __name__ == '__main__':
    try:
        main(['serve'] + sys.argv[1:], standalone_mode=False)
    except ValueError as e:
        print(f"\n--- CONFIGURATION ERROR ---\nCould not start the application: {e}\nCheck the environment variables.\n---------------------------\n")
        sys.exit(1)
