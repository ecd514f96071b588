"""System of record for HouseHub.

Services talk to the repository interfaces in ``househub.persistence.base``;
``househub.persistence.repositories`` implements them on SQLAlchemy.
"""
