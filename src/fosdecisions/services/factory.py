"""Base class for all services with factory pattern support."""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Optional

from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.models.options import PipelineOptions

T = TypeVar('T')


class ServiceFactoryABC(ABC, Generic[T]):
    """
    Abstract base class for all stage services.

    Each service implements create_default() to build itself, with its
    clients and stores, from run options and the dataset layout.
    """

    @classmethod
    @abstractmethod
    def create_default(
        cls,
        options: Optional[PipelineOptions] = None,
        layout: Optional[DatasetLayout] = None,
    ) -> T:
        """
        Create a default instance of the service.

        Args:
            options: Run options (defaults when omitted)
            layout: Dataset paths (from settings when omitted)

        Returns:
            T: Configured instance of the service

        Raises:
            NotImplementedError: If subclass doesn't implement this method
        """
        raise NotImplementedError("Subclasses must implement create_default() factory method")
