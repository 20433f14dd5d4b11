"""Local air quality: location, place name and current AQI"""
__version__ = "1.0.0"
