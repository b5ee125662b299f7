"""Fuel volume and cost estimation."""

from dataclasses import dataclass

from roadtrip.errors import InputError


@dataclass(frozen=True)
class FuelEstimate:
    fuel_liters: float
    total_cost: float


def estimate(
    total_distance_km: float,
    consumption_per_100km: float,
    price_per_liter: float,
) -> FuelEstimate:
    """
    Estimate fuel needed and its cost for a distance.

    Raises:
        InputError: If consumption or price is not positive
    """
    if consumption_per_100km <= 0:
        raise InputError("Fuel consumption must be positive")
    if price_per_liter <= 0:
        raise InputError("Fuel price must be positive")

    liters = total_distance_km / 100 * consumption_per_100km
    return FuelEstimate(fuel_liters=liters, total_cost=liters * price_per_liter)
