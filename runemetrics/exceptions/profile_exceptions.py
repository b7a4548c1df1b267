class ProfileError(Exception):
    def __init__(
        self,
        message="Error response from RuneMetrics.",
    ):
        self.message = message
        super().__init__(self.message)


class ProfileNotFound(ProfileError):
    def __init__(
        self,
        message="Player has no RuneMetrics profile.",
    ):
        super().__init__(message)


class ProfilePrivate(ProfileError):
    def __init__(
        self,
        message="Player's RuneMetrics profile is private.",
    ):
        super().__init__(message)
