import uuid

from cuid2 import cuid_wrapper

# Create a CUID generator with custom settings
cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier"""
    result = cuid_generator()
    assert isinstance(result, str)
    return result


def generate_blob_name(filename: str) -> str:
    """Prefix the original file name with a UUID so uploads never overwrite"""
    return f"{uuid.uuid4()}_{filename}"
