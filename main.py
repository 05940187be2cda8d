"""
Vats Rental Back Office - Web Server Entry Point
================================================

Run this to start the web dashboard:
    python main.py

Then open http://127.0.0.1:8000 in your browser.

To message every customer from the command line:
    python run_broadcast.py --message "..."

To back up or restore from the command line:
    python run_backup.py export
"""

import logging

import uvicorn


def main():
    """Start the web server."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    print("\n" + "=" * 50)
    print("   Vats Rental - Back Office")
    print("=" * 50)
    print("\n   Starting server at http://127.0.0.1:8000")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "rental_backoffice.web.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )


if __name__ == "__main__":
    main()
