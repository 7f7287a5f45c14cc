from chan_reader.services.models import (
    Board,
    BookmarkedThread,
    MediaType,
    MediaUrls,
    Message,
    Post,
    messages_from_posts,
)


def test_post_from_api_ignores_unknown_keys() -> None:
    post = Post.from_api({"no": 5, "resto": 1, "com": "hi", "unique_ips": 3, "semantic_url": "x"})
    assert post.no == 5
    assert post.resto == 1
    assert post.com == "hi"


def test_post_media_helpers() -> None:
    post = Post(no=1, tim=1611710000123, ext=".WEBM", w=1920, h=1080, filename="clip")
    assert post.has_file
    assert post.media_type is MediaType.VIDEO
    assert post.aspect_ratio == 1920 / 1080
    assert post.image_url("v") == "https://i.4cdn.org/v/1611710000123.WEBM"
    assert post.thumbnail_url("v") == "https://i.4cdn.org/v/1611710000123s.jpg"


def test_post_without_file() -> None:
    post = Post(no=1)
    assert not post.has_file
    assert post.media_type is MediaType.NONE
    assert post.aspect_ratio == 1.5
    assert post.image_url("v") is None
    assert post.thumbnail_url("v") is None


def test_deleted_file_and_spoiler() -> None:
    deleted = Post(no=1, tim=5, ext=".png", filedeleted=1)
    assert not deleted.has_file

    spoiler = Post(no=2, tim=5, ext=".png", spoiler=1)
    urls = MediaUrls(image_base_url="https://img.test", static_base_url="https://static.test")
    assert spoiler.thumbnail_url("a", urls) == "https://static.test/image/spoiler.png"
    assert spoiler.image_url("a", urls) == "https://img.test/a/5.png"


def test_unknown_extension() -> None:
    assert Post(no=1, ext=".swf").media_type is MediaType.UNKNOWN
    assert Post(no=1, ext=".JPG").media_type is MediaType.IMAGE


def test_post_text_helpers() -> None:
    post = Post(no=1, sub="Tom &amp; Jerry", com="a<br>b")
    assert post.display_name == "Anonymous"
    assert post.clean_subject == "Tom & Jerry"
    assert post.clean_comment == "a\nb"


def test_board_from_api() -> None:
    board = Board.from_api(
        {
            "board": "v",
            "title": "Video Games",
            "ws_board": 1,
            "meta_description": "&quot;/v/&quot; is for games",
            "cooldowns": {"threads": 600, "replies": 60, "images": 60},
            "is_archived": 1,
        }
    )
    assert board.is_work_safe
    assert board.display_name == "/v/ - Video Games"
    assert board.clean_description == '"/v/" is for games'
    assert board.cooldowns.replies == 60


def test_bookmark_id() -> None:
    bookmark = BookmarkedThread(board="v", thread_id=123456789)
    assert bookmark.id == "v_123456789"
    assert bookmark.as_dict()["id"] == "v_123456789"


def test_messages_from_posts() -> None:
    posts = [Post(no=10, resto=0, com="op"), Post(no=12, resto=10, com="&gt;&gt;10")]
    messages = messages_from_posts(posts)
    assert messages == [
        Message(id=10, arrival_index=0, thread_root_id=None, raw_text="op"),
        Message(id=12, arrival_index=1, thread_root_id=10, raw_text="&gt;&gt;10"),
    ]
    assert messages[1].post is posts[1]
    assert messages[1].clean_comment == ">>10"
