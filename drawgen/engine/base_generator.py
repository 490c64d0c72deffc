"""
Base generator abstract class and the unique-id counter.

Defines the interface every code generator implements. The file layout
(header comment, preamble, one block per image, ending) is owned by
BaseGenerator.generate_file so that backends only produce their pieces.
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from drawgen.engine.config import GeneratorConfig
    from drawgen.models.draw_route import Image

logger = logging.getLogger(__name__)

GENERATED_HEADER = "// Generated by drawgen"


class UniqueIdCounter:
    """
    Source of suffixes for generated temporaries.

    One counter belongs to one generation run and is never reset between
    images, so names stay unique across a whole output file.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


class BaseGenerator(ABC):
    """
    Abstract base class for all code generators.

    Example:
        >>> generator = ObjcHeaderGenerator(GeneratorConfig(prefix="Icons"))
        >>> text = generator.generate_file(images)
    """

    def __init__(self, config: 'GeneratorConfig', counter: Optional[UniqueIdCounter] = None):
        """
        Args:
            config: Generation configuration
            counter: Shared unique-id counter for this run (new one if None)
        """
        self.config = config
        self.counter = counter or UniqueIdCounter()
        logger.debug(f"{self.__class__.__name__} created")

    @property
    def prefix(self) -> str:
        return self.config.prefix

    @abstractmethod
    def file_preamble(self) -> str:
        """Text placed after the generated-file comment, before any image."""
        ...

    @abstractmethod
    def generate_image_function(self, image: 'Image') -> str:
        """Text for one image."""
        ...

    @abstractmethod
    def file_ending(self) -> str:
        ...

    def generate_file(self, images: Iterable['Image']) -> str:
        """Assemble the complete file; images appear in the given order."""
        functions = "\n\n".join(self.generate_image_function(image) for image in images)
        return f"{GENERATED_HEADER}\n\n{self.file_preamble()}{functions}\n\n{self.file_ending()}\n"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(prefix={self.prefix!r})"
