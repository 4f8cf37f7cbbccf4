import threading
import time


class SharedState:
    """
    Singleton class to share state between the pipeline run
    and the FastAPI status server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.engine = None
                    cls._instance.config = None
                    cls._instance.config_lock = threading.Lock()
                    cls._instance.start_time = None
        return cls._instance

    def set_engine(self, engine):
        """Register the engine whose session the API reports on."""
        self.engine = engine
        self.start_time = time.time()

    def get_engine(self):
        return self.engine

    def set_config(self, config):
        with self.config_lock:
            self.config = config

    def get_config(self):
        with self.config_lock:
            return self.config

    def reset(self):
        """Forget the registered engine and config."""
        self.engine = None
        self.start_time = None
        with self.config_lock:
            self.config = None


# Global instance
state = SharedState()
