# Paths of the pan service; update if the service moves them.

BASE_URL = "https://cloud.189.cn"
API_URL = "https://api.cloud.189.cn"

USER = {
    "info": {
        "method": "GET",
        "path": "/getUserInfo.action",
    },
    "portal_info": {
        "method": "GET",
        "path": "/api/open/user/getUserInfoForPortal.action",
    },
}

FILES = {
    "info_by_path": {
        "method": "GET",
        "path": "/getFileInfo.action",
    },
    "rename": {
        "method": "GET",
        "path": "/renameFile.action",
    },
}

FAMILY_FILES = {
    "info_by_path": {
        "method": "GET",
        "path": "/family/file/getFileInfo.action",
    },
    "rename": {
        "method": "GET",
        "path": "/family/file/renameFile.action",
    },
}
