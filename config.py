"""
Global configuration and constants for SkySim.

Physical constants are rounded to the precision the colour baselines were
recorded with. The visual-tuning knobs are not physical quantities.
"""

# --- Physical Constants ---
PLANCK_CONSTANT = 6.626e-34        # J·s
SPEED_OF_LIGHT = 3e8               # m/s
BOLTZMANN_CONSTANT = 1.38e-23      # J/K
MOLECULAR_NUMBER_DENSITY = 2.504e25  # molecules per m^3 at sea level

# --- Refractive Index ---
REFRACTIVE_INDEX_DRY = 1.00029             # Dry air at visible wavelengths
REFRACTIVE_INDEX_HUMIDITY_COEFF = 5e-5     # Added per unit relative humidity

# --- Channel Wavelengths (nm) ---
# Extinction and irradiance sampling wavelengths differ; see DESIGN.md.
EXTINCTION_WAVELENGTHS_NM = (650.0, 550.0, 450.0)   # R, G, B
IRRADIANCE_WAVELENGTHS_NM = (680.0, 520.0, 440.0)   # R, G, B

# --- Atmosphere Geometry ---
SCALE_HEIGHT_M = 8000.0            # Vertical path length with the sun at zenith
MAX_PATH_LENGTH_M = 4e5            # Hard cap on the slant path near the horizon
MIN_COS_ZENITH = 0.01              # Floor on cos(zenith) to avoid division by zero
ALTITUDE_SCALE_HEIGHT_M = 8500.0   # Density e-folding height for observer altitude

# --- Light Source ---
SOURCE_TEMPERATURE_K = 5800.0      # Solar photosphere blackbody temperature

# --- Visual Tuning ---
EXTINCTION_SCALE = 10.0            # Multiplier on sky-path Rayleigh/Mie coefficients
SUN_EXTINCTION_SCALE = 1.0         # Multiplier on sun-disc Rayleigh/Mie coefficients
IRRADIANCE_DISPLAY_SCALE = 1e-12   # Brings Planck radiance into a workable range
GREEN_PATH_MULTIPLIER = 1.5        # Lengthens the green path to curb green dominance
SUN_GREEN_IRRADIANCE_FACTOR = 0.9  # Extra green damping on the sun disc
MIE_ASYMMETRY_G = 0.76             # Forward-scattering bias of the Mie phase
SUN_BRIGHTNESS_BASE = 0.9          # Sun brightness = base + slope * cos(zenith)
SUN_BRIGHTNESS_SLOPE = 0.1

# --- Input Domain ---
SUN_ANGLE_MIN_DEG = 5.0
SUN_ANGLE_MAX_DEG = 90.0

# --- Normalization Fallbacks ---
# Used only when a caller opts in to a fallback on degenerate intensities.
FALLBACK_SKY_COLOR = (0, 0, 0)
FALLBACK_SUN_COLOR = (255, 255, 255)

# --- Cloud Field ---
CLOUD_NOISE_SEED = 42
CLOUD_BASE_FREQUENCY = 0.008       # Noise cycles per pixel at the first octave
CLOUD_OCTAVES = 5                  # Real-time evaluator
CLOUD_COARSE_OCTAVES = 3           # Discretely sampled grid evaluator
CLOUD_COARSE_STEP_PX = 5           # Grid evaluator sampling pitch
CLOUD_THRESHOLD = 0.2              # Noise level below which the sky is clear
CLOUD_INTENSITY_GAIN = 5.0         # Opacity gain applied with cloud cover
CLOUD_TIME_RATE = 0.01             # Noise z-coordinate advance per unit time
CLOUD_RGB = (100, 100, 100)        # Overlay colour of the cloud layer

# --- Display ---
APP_TITLE = "SkySim — Sky Colour Simulator"  # Browser tab and page heading
CANVAS_WIDTH_PX = 400
CANVAS_HEIGHT_PX = 500
REFLECTION_HEIGHT_PX = 250         # Horizon reflection band below the sky
HALO_INNER_FRACTION = 0.1          # Of canvas width, before the size factor
HALO_OUTER_FRACTION = 0.3
HALO_ALPHA = 0.4
SUN_INNER_FRACTION = 0.05
SUN_OUTER_FRACTION = 0.1
SUN_SIZE_DIVISOR = 80.0            # size factor = 1 + (90 - sun angle) / divisor
CLOUD_CACHE_MAX_ENTRIES = 16       # Cached cloud rasters kept by the UI
MAX_LOGICAL_TIME_S = 600           # Upper end of the time slider

# --- Default Weather Snapshot ---
DEFAULT_HUMIDITY = 0.5
DEFAULT_VISIBILITY_M = 10000.0
DEFAULT_CLOUD_COVER = 0.2
DEFAULT_TEMPERATURE_K = 288.0
DEFAULT_WIND_SPEED = 0.0
DEFAULT_WIND_DIRECTION = 0.0
DEFAULT_ALTITUDE_M = 0.0
DEFAULT_SUN_ANGLE = 45.0

# --- Weather Service ---
NWS_API_URL = "https://api.weather.gov"
NWS_USER_AGENT = "(skysim, skysim@example.org)"
NWS_TIMEOUT_S = 10.0
WEATHER_CACHE_TTL_S = 900          # Seconds a fetched baseline stays cached
