# SmartPark database models
# Import all models here for SQLAlchemy discovery

from smartpark.models.vehicle import Vehicle                  # noqa
from smartpark.models.parking_spot import ParkingSpot         # noqa
from smartpark.models.parking_session import ParkingSession   # noqa
from smartpark.models.rate import Rate                        # noqa
