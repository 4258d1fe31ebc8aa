"""
Prayer Times Bot - Discord notifications for the five daily prayers.

This package fetches the day's prayer times for a configured city from the
Aladhan API, announces each prayer in a Discord channel when its time
arrives, and answers slash commands for lookups in any city.

Example:
    Basic usage:

    ```python
    from prayer_times_bot.main import main

    if __name__ == "__main__":
        main()
    ```
"""

__version__ = "0.1.0"

# Only import main function to avoid circular dependencies
def main():
    """Main entry point for the Prayer Times Bot."""
    from prayer_times_bot.main import main as _main
    return _main()

__all__ = ["main", "__version__"]
