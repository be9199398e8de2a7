from gmqtt.bitmap import MAX_SIZE, Bitmap


def test_bitmap_max_size():
    b = Bitmap(MAX_SIZE)
    assert b.size() == MAX_SIZE

    b.set(1, 1)
    assert b.get(1) == 1

    b.set(1, 0)
    assert b.get(100) == 0
    assert b.get(1) == 0

    b.set(MAX_SIZE, 1)
    assert b.get(MAX_SIZE) == 1

    b.set(MAX_SIZE, 0)
    assert b.get(MAX_SIZE) == 0

    b.set(MAX_SIZE, 1)
    assert b.get(MAX_SIZE) == 1


def test_zero_size_means_max():
    assert Bitmap(0).size() == MAX_SIZE


def test_size_rounds_up_to_byte_multiple():
    b = Bitmap(10)
    assert b.size() % 8 == 0
    assert b.size() >= 10
    assert b.size() < 18


def test_out_of_range():
    b = Bitmap(8)
    assert b.set(b.size() + 1, 1) is False
    assert b.get(b.size() + 1) == 0
    assert b.set(b.size(), 1) is True
    assert b.get(b.size()) == 1