"""
reset_data.py
-------------
Utility script to drop and recreate every table in the configured database.

This script is designed for development and testing purposes.

Usage:
    $ python reset_data.py

After running this script, you can repopulate sample data by executing:
    $ python seeds.py
"""

from vehicle_rental import create_app
from vehicle_rental.models.db import db


def main():
    app = create_app()
    with app.app_context():
        db.drop_all()
        db.create_all()

    print(f"Database {app.config['SQLALCHEMY_DATABASE_URI']} has been reset.")
    print("Tip: Run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
