"""
Entry point for python -m catcher
"""
if __name__ == "__main__":
    from .app import main
    main()
