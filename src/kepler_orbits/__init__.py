"""
kepler_orbits
Two-body orbital mechanics: element conversions, Kepler propagation,
Lambert transfers, maneuvers and flyby geometry
"""

__version__ = "0.1.0"
