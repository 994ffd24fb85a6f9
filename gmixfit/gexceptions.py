class GMixRangeError(Exception):
    """
    Some number was out of range, e.g. a determinant too low or a shear
    outside the unit disk
    """

    def __init__(self, value):
        super(GMixRangeError, self).__init__(value)
        self.value = value

    def __str__(self):
        return repr(self.value)


class GMixFatalError(Exception):
    """
    A caller error: bad model name, wrong number of parameters, mismatched
    array sizes
    """

    def __init__(self, value):
        super(GMixFatalError, self).__init__(value)
        self.value = value

    def __str__(self):
        return repr(self.value)


class GMixMaxIterEM(Exception):
    """
    EM algorithm hit max iter
    """

    def __init__(self, value):
        super(GMixMaxIterEM, self).__init__(value)
        self.value = value

    def __str__(self):
        return repr(self.value)
