class Paginator:
    """Pages over an ordered list of row labels (filter already applied)."""

    def __init__(self, labels=None, page_size: int = 1000):
        self.page_size = max(1, page_size)
        self.page_index = 0
        self.labels = list(labels or [])
        self._clamp()

    def _clamp(self):
        max_page = self.page_count - 1
        self.page_index = max(0, min(self.page_index, max_page))

    def update_labels(self, labels):
        self.labels = list(labels)
        self._clamp()

    def next_page(self):
        if self.page_end < self.total_rows:
            self.page_index += 1
            self._clamp()

    def prev_page(self):
        if self.page_index > 0:
            self.page_index -= 1
            self._clamp()

    def ensure_label_visible(self, label) -> bool:
        try:
            pos = self.labels.index(label)
        except ValueError:
            return False
        target_index = pos // self.page_size
        if target_index != self.page_index:
            self.page_index = target_index
            self._clamp()
        return True

    @property
    def total_rows(self) -> int:
        return len(self.labels)

    @property
    def page_start(self) -> int:
        return self.page_index * self.page_size

    @property
    def page_end(self) -> int:
        return min(self.total_rows, self.page_start + self.page_size)

    @property
    def page_count(self) -> int:
        if self.total_rows == 0:
            return 1
        return (self.total_rows - 1) // self.page_size + 1

    @property
    def page_labels(self) -> list:
        return self.labels[self.page_start : self.page_end]
