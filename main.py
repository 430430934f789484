"""
Entry point script for the code_assist application.
This allows running the app directly from the project root.
"""
from code_assist.main import main

if __name__ == "__main__":
    main()
