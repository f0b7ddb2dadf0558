"""
Application constants.
"""

API_DESCRIPTION = """
    ## FloodGuard API

    Real-time flood risk monitoring backed by a scheduled prediction pipeline:

    * **Data Acquisition**: Rainfall (OpenWeatherMap), river level (USGS), soil moisture (SoilGrids)
    * **Risk Scoring**: Neural network when a trained model is present, bucketed heuristic otherwise
    * **Broadcasting**: Every cycle result is published on the MQTT `floodUpdate` channel
    * **Alerting**: Medium and high risk records trigger one push notification each

    ### Features
    - 🌧️ **Latest Prediction**: Most recent risk record with data provenance
    - 📜 **History**: Newest-first record listing
    - 📊 **Statistics**: Risk distribution and active scoring mode
    - ▶️ **Manual Trigger**: Queue an out-of-band prediction cycle
    """

# Provenance marker for readings that did not come from a provider
FALLBACK_SOURCE = "fallback"

# Provider names recorded as reading provenance
RAINFALL_PROVIDER = "OpenWeatherMap"
WATER_LEVEL_PROVIDER = "USGS"
SOIL_MOISTURE_PROVIDER = "SoilGrids"

# Values used when a provider cannot deliver
RAINFALL_FALLBACK = 0.0
WATER_LEVEL_FALLBACK = 2.1
SOIL_MOISTURE_FALLBACK = 0.5

# Risk level thresholds on the 0-100 prediction scale
MEDIUM_RISK_THRESHOLD = 30
HIGH_RISK_THRESHOLD = 70

# Model input normalization
RAINFALL_SCALE = 50.0
WATER_LEVEL_SCALE = 6.0
PLACEHOLDER_FEATURE = 0.05

FLOOD_UPDATE_EVENT = "floodUpdate"

MODEL_TOPOLOGY_FILE = "model.json"
MODEL_WEIGHTS_FILE = "weights.pt"
MODEL_METADATA_FILE = "metadata.json"
MODEL_FORMAT = "floodguard-sequential"
