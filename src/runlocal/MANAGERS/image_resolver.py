"""
Chooses the image each container runs.
"""
from typing import Dict, Optional

from ..MODELS.task_descriptor import TaskDescriptor
from ..errors import ConfigurationError


def resolve_images(descriptor: TaskDescriptor,
                   built: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Returns container name -> image URI.
    A freshly built image wins; otherwise the descriptor's image is used.

    :raises ConfigurationError: If a built image names an unknown container,
        or a container ends up without any image.
    """
    built = built or {}
    names = descriptor.container_names()
    unknown = sorted(set(built) - set(names))
    if unknown:
        raise ConfigurationError(f"images given for unknown containers: {', '.join(unknown)}")

    images = {}
    for container in descriptor.containers:
        image = built.get(container.name) or container.image
        if not image:
            raise ConfigurationError(f"container {container.name!r} has no image")
        images[container.name] = image
    return images
