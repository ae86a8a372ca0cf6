################################################################################
# File Name: vehicle.py
# Purpose/Description: Vehicle identity used to annotate a diagnostic session
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 OBD-II Session Engine Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Vehicle identity module.

The garage service owns vehicles; the engine only receives the active one
and attaches it to the session context. Decoding never looks at it.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .exceptions import InvalidVehicleError

MIN_VEHICLE_YEAR = 1970
MAX_VEHICLE_YEAR = 2025


def validateVehicleYear(year: str) -> bool:
    """
    Check a model year.

    Accepts exactly four digits between MIN_VEHICLE_YEAR and MAX_VEHICLE_YEAR.
    """
    year = (year or '').strip()
    if len(year) != 4 or not year.isdigit():
        return False
    return MIN_VEHICLE_YEAR <= int(year) <= MAX_VEHICLE_YEAR


@dataclass(frozen=True)
class VehicleIdentity:
    """
    Vehicle selected in the garage.

    Attributes:
        make: Manufacturer
        model: Model name
        year: Four-digit model year
        vehicleId: Garage identifier
    """
    make: str
    model: str
    year: str
    vehicleId: str = field(default_factory=lambda: uuid.uuid4().hex[:9])

    def describe(self) -> str:
        return f"{self.make} {self.model} {self.year}"

    def toDict(self) -> Dict[str, Any]:
        return {
            'vehicleId': self.vehicleId,
            'make': self.make,
            'model': self.model,
            'year': self.year,
        }


def createVehicle(
    make: str,
    model: str,
    year: str,
    vehicleId: Optional[str] = None
) -> VehicleIdentity:
    """
    Build a validated VehicleIdentity.

    Raises:
        InvalidVehicleError: If make/model are blank or the year is out of range
    """
    make = (make or '').strip()
    model = (model or '').strip()
    year = str(year or '').strip()

    invalid = []
    if not make:
        invalid.append('make')
    if not model:
        invalid.append('model')
    if not validateVehicleYear(year):
        invalid.append('year')

    if invalid:
        raise InvalidVehicleError(
            f"Invalid vehicle: {', '.join(invalid)}",
            details={'make': make, 'model': model, 'year': year, 'invalidFields': invalid}
        )

    if vehicleId:
        return VehicleIdentity(make=make, model=model, year=year, vehicleId=vehicleId)
    return VehicleIdentity(make=make, model=model, year=year)


def createVehicleFromConfig(config: Dict[str, Any]) -> Optional[VehicleIdentity]:
    """
    Build the active vehicle from the optional 'vehicle' config section.

    Returns:
        VehicleIdentity, or None when no vehicle is configured
    """
    vehicleConfig = config.get('vehicle') or {}
    if not vehicleConfig.get('make'):
        return None

    return createVehicle(
        make=vehicleConfig.get('make', ''),
        model=vehicleConfig.get('model', ''),
        year=str(vehicleConfig.get('year', '')),
        vehicleId=vehicleConfig.get('vehicleId'),
    )
