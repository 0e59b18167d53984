import abc


class Runnable(abc.ABC):
    """Interface of the objects performing a complete computation."""

    @abc.abstractmethod
    def run(self):
        pass
