"""Row builders shared by the integration tests."""


def make_user(repos, name="jane"):
    return repos.users.create({"user_name": name, "email": f"{name}@example.com"})


def make_blog(repos, user, name="blog"):
    return repos.blogs.create({"user_id": user.id, "name": name, "slug": name.replace(" ", "-")})


def make_post(repos, user, blog_row, name="post"):
    return repos.posts.create({
        "user_id": user.id,
        "blog_id": blog_row.id,
        "name": name,
        "slug": name.replace(" ", "-"),
        "description": f"{name} description",
        "content": f"{name} content",
    })


def make_comment(repos, user, post, content="nice"):
    return repos.comments.create({"post_id": post.id, "user_id": user.id, "content": content})
