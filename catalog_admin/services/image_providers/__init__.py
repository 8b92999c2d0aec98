# Package exports - these allow cleaner imports like:
# from catalog_admin.services.image_providers import ImageProvider, LocalImageProvider
from catalog_admin.services.image_providers.base import ImageProvider, StoredImage
from catalog_admin.services.image_providers.local_provider import LocalImageProvider, is_external_url
