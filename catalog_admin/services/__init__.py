# Initialize the active image provider (local disk)
_image_provider = None


def get_image_provider():
    """Get the configured image provider instance"""
    global _image_provider
    if _image_provider is None:
        from catalog_admin.services.image_providers.local_provider import LocalImageProvider
        _image_provider = LocalImageProvider()
    return _image_provider
