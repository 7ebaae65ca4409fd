# snaphost/protocol/endpoints.py
"""
HTTP endpoint paths and fixed wire constants of the Snapmaker 2.0 API.
"""

# The only machine series this host drives.
EXPECTED_SERIES = "Snapmaker 2.0 A350"

CONNECT = "/api/v1/connect"
DISCONNECT = "/api/v1/disconnect"
STATUS = "/api/v1/status"
ENCLOSURE = "/api/v1/enclosure"
MODULE_INFO = "/api/v1/module_info"
MODULE_LIST = "/api/v1/module_list"
EXECUTE_CODE = "/api/v1/execute_code"
PREPARE_PRINT = "/api/v1/prepare_print"
START_PRINT = "/api/v1/start_print"
PAUSE_PRINT = "/api/v1/pause_print"
RESUME_PRINT = "/api/v1/resume_print"
STOP_PRINT = "/api/v1/stop_print"

REQUEST_CAPTURE_PHOTO = "/api/request_capture_photo"
GET_CAMERA_IMAGE = "/api/get_camera_image"

# Capture parameters sent with every photo request
CAPTURE_FEED_RATE = 3000
CAPTURE_PHOTO_QUALITY = 31

# prepare_print job types
JOB_TYPE_CNC = "CNC"
JOB_TYPE_LASER = "Laser"
