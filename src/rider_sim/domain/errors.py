class RoadNotFound(KeyError):
    """A road id referenced by a rider, route or hazard is not in the road map.

    Always a graph / agent desync bug, never a routine condition.
    """

    def __init__(self, road_id: str, context: str = ""):
        self.road_id = road_id
        msg = f"road not found: {road_id!r}"
        super().__init__(f"{msg} ({context})" if context else msg)


class IntersectionNotFound(KeyError):
    def __init__(self, intersection_id: str, context: str = ""):
        self.intersection_id = intersection_id
        msg = f"intersection not found: {intersection_id!r}"
        super().__init__(f"{msg} ({context})" if context else msg)
