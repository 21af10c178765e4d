"""Entry point for running jarvis as a module: python -m jarvis"""

from jarvis.app import main

if __name__ == "__main__":
    main()
