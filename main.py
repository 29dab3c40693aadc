"""Simple entrypoint to run the wardrobe engine locally."""

from engine_app.app import WardrobeApp


def main() -> None:
    app = WardrobeApp()
    app.start()
    try:
        outfit = app.suggest("casual lunch")
        if outfit is None:
            print(f"No outfit yet: {len(app.engine.items())} items in the catalog.")
        else:
            print(outfit.reason)
    finally:
        app.shutdown()


if __name__ == "__main__":
    main()
